"""Entry point for 'python -m practicebase' command."""

from practicebase.cli import main

if __name__ == "__main__":
    main()
