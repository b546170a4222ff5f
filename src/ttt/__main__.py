"""``python -m ttt`` runs the same error boundary as the ``ttt`` script."""

from __future__ import annotations

from ttt.cli.app import cli

if __name__ == "__main__":
    cli()
