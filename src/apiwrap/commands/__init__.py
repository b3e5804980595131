"""Built-in sub-commands of the ``apiwrap`` command line tool."""
