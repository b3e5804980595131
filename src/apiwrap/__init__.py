"""apiwrap -- Generate documented HTTP API client functions from declarative tables.

This package turns a handful of caller-supplied *primitives* (one function per
HTTP verb) into a family of *resource* functions, each bound to a single API
endpoint, carrying a synthesized docstring and able to compute its request
path from live domain objects such as a repository record.

Typical workflow::

    from apiwrap.registry import register_backend

    github = register_backend(
        "GitHub",
        "ghubp",
        {"repo": "A repository object as returned by the API."},
        lambda version, fragment: f"https://docs.github.com/v{version}/{fragment}",
        {"GET": get, "PUT": put, "HEAD": head, "POST": post, "PATCH": patch, "DELETE": delete},
    )
    list_issues = github.get(
        "/repos/:owner/:repo/issues",
        "List issues for a repository.",
        3,
        "issues/#list-issues-for-a-repository",
        ("repo", "/repos/:owner.login/:name/issues"),
    )
    list_issues(repo, state="closed")

Modules:
    registry: Backend registry and the per-verb resource definers.
    generator: Resource generation, path resolution, argument normalisation
        and documentation synthesis.
    models: Pydantic models shared across the package.
    exceptions: Exception hierarchy with exit-code mapping.
    loader: Declarative resource tables from YAML or JSON.
    client: Ready-made primitives backed by :mod:`httpx`.
    config: Client settings, credential sources and the data directory.
    output: Rich-based stdout/stderr output for the command line tool.
    app: Typer command line tool for inspecting backends and templates.
"""

__version__ = "0.3.0"
