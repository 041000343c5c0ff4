"""
Run with: python -m butterflyeffect
"""
from butterflyeffect.main import main

if __name__ == "__main__":
    main()
