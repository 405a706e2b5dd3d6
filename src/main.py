import sys
import logging

from csv_io import write_snapshots
from payments_engine import PaymentsEngine

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


def main() -> int:
    if len(sys.argv) != 2:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    filepath = sys.argv[1]
    engine = PaymentsEngine()
    try:
        engine.process_file(filepath)
    except OSError as e:
        logger.error(f"Could not read transactions file {filepath}: {e}")
        return 1

    write_snapshots(engine.snapshots(), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
