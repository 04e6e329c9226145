import sys
from pathlib import Path

# Ensure we can import from sandbox/
root = Path(__file__).parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

if __name__ == "__main__":
    from sandbox.gui.__main__ import main

    main(sys.argv[1:])
