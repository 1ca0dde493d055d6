from __future__ import annotations

from ios_simloc.cli.simloc import entrypoint

if __name__ == "__main__":
    entrypoint()
