import sys
from pathlib import Path


def _ensure_src_on_path() -> None:
    root = Path(__file__).resolve().parent
    src_path = root / "src"
    sys.path.insert(0, str(src_path))


def main() -> int:
    _ensure_src_on_path()
    from hurler.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    raise SystemExit(main())
