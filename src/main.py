import sys
import logging

from payments_engine import PaymentsEngine
from records import write_accounts

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Warnings and errors go to stderr so stdout carries only the account snapshot."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv=None) -> int:
    configure_logging()

    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    filepath = argv[0]
    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(filepath)
    except OSError as e:
        logger.error(f"Cannot read {filepath}: {e}")
        return 1

    write_accounts(accounts, sys.stdout)
    sys.stdout.flush()
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
