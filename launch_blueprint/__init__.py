"""
launch_blueprint package

This package clones a source repository into a new workspace and binds launch
options into the repository's workflow definitions.

Key responsibilities are split across modules:
- `options.py`: option sources, environment definitions, and the option resolver
- `config.py`: options file loading and the embedded launch-options schema
- `workflow.py`: workflow YAML <-> typed action tree
- `binder.py`: variable, environment and parameter-override binding over the tree
- `renderer.py`: placeholder substitution in workflow text
- `source.py`: cloning and staging the source repository
- `blueprint.py`: synthesis orchestration (stage -> bind -> write)
- `cli.py`: CLI entrypoint
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
