import argparse
import json
import sys

from inventory_agent.core.agent import Agent
from inventory_agent.core.encoding import decode_compressed, to_json_text
from inventory_agent.core.errors import EncodingError
from inventory_agent.core.snapshot import build_snapshot


def show():
    snapshot = build_snapshot()
    sys.stdout.write(to_json_text(snapshot))


def decode(path):
    if path == "-":
        data = sys.stdin.buffer.read()
    else:
        with open(path, "rb") as f:
            data = f.read()

    try:
        value = decode_compressed(data)
    except EncodingError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print(json.dumps(value, indent=2))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single report cycle and exit"
    )

    args = parser.parse_args(argv)

    agent = Agent()
    try:
        if args.once:
            agent.run_once()
            return

        agent.run()
    finally:
        agent.close()

if __name__ == "__main__":
    main()
