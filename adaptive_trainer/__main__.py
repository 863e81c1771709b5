from __future__ import annotations

from .simulation import main

if __name__ == "__main__":
    main()
