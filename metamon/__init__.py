"""Compile ``.mtm`` single-file components into framework modules.

A unit declares its target framework in YAML frontmatter and describes its
state, functions, and markup in one shared syntax. metamon parses the unit,
validates it, and emits a React, Vue, Solid, or Svelte module that talks to
the shared ``@metamon/core`` runtime for cross-framework signals and events.

Exports
-------
- ``app``: Cyclopts application behind the ``mtm`` console script.
- ``main``: Convenience function that invokes the Cyclopts app.
- ``compile_source``: Parse, validate, and emit one unit.
- ``ProjectBuilder``: Compile a whole project in dependency order.

Examples
--------
>>> from metamon import compile_source
>>> compiled = compile_source("---\\ntarget: reactjs\\n---\\n$count! = 0\\n")
>>> compiled.target
'reactjs'
>>> from metamon import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .build import ProjectBuilder
from .cli import app, main
from .codegen import compile_source

__all__ = ["ProjectBuilder", "app", "compile_source", "main"]
