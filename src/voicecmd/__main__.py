"""voicecmd CLI bootstrap."""

from __future__ import annotations

from voicecmd.cli import app

if __name__ == "__main__":
    app()
