import os

# Build metadata, passed via environment at build/deploy time
__version__ = "0.1.0"
GIT_BRANCH = os.getenv("GIT_BRANCH", "unknown")
GIT_COMMIT = os.getenv("GIT_COMMIT", "unknown")
BUILD_TIME = os.getenv("BUILD_TIME", "unknown")


def version_info() -> dict:
    return {
        "version": __version__,
        "branch": GIT_BRANCH,
        "commit": GIT_COMMIT,
        "built_at": BUILD_TIME,
    }


__all__ = ["__version__", "GIT_BRANCH", "GIT_COMMIT", "BUILD_TIME", "version_info"]
