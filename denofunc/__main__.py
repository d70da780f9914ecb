# denofunc/__main__.py
"""
`python -m denofunc …` forwards to the Typer CLI in `denofunc.cli`.
"""

from __future__ import annotations

from denofunc.cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
