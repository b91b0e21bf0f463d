"""
Version information for the SEI Market SDK.
"""
import importlib.metadata
import pathlib
import tomli

# Installed package metadata first
try:
    __version__ = importlib.metadata.version("sei-market-sdk")
except importlib.metadata.PackageNotFoundError:
    # Source checkout: read pyproject.toml
    try:
        path = pathlib.Path(__file__).parent.parent / "pyproject.toml"
        with path.open("rb") as f:
            data = tomli.load(f)
        __version__ = data["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        __version__ = "0.1.0"
