import argparse

def main(argv=None):
    p = argparse.ArgumentParser(prog="inventory-agent")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("run", help="Report inventory periodically")
    sub.add_parser("once", help="Report inventory once and exit")
    sub.add_parser("show", help="Print the collected inventory as JSON without reporting")
    dec = sub.add_parser("decode", help="Decode a compressed inventory attribute value")
    dec.add_argument("file", help="File holding the attribute value, or - for stdin")

    args = p.parse_args(argv)

    if args.cmd == "run":
        from inventory_agent.main import main as run_main
        return run_main([])

    elif args.cmd == "once":
        from inventory_agent.main import main as run_main
        return run_main(["--once"])

    elif args.cmd == "show":
        from inventory_agent.main import show
        return show()

    elif args.cmd == "decode":
        from inventory_agent.main import decode
        return decode(args.file)

if __name__ == "__main__":
    raise SystemExit(main())
