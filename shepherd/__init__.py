"""
shepherd package

Bundle Shepherd starts a CodeBuild run for every commit pushed to a GitHub repository.

Key responsibilities are split across modules:
- `naming.py`: deterministic CodeBuild project names
- `github_client.py`: isolated GitHub REST API interactions (repository contents)
- `overrides.py`: read `buildspec.yml` / `.bundle-shepherd.json` overrides from a commit
- `images.py`: symbolic image names -> ECR image URIs
- `buildspec.py`: packaged default build specs
- `codebuild.py`: isolated CodeBuild interactions (find / create project, start build)
- `config.py`: environment-sourced settings and logging setup
- `handler.py`: Lambda entrypoint and orchestration (overrides -> project -> build)
- `cli.py`: local CLI around the same pipeline
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
