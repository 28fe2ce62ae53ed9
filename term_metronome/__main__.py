from __future__ import annotations

from term_metronome.app import main

if __name__ == "__main__":
    main()
