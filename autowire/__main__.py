"""
autowire: command-line entry point.

Usage:
    python -m autowire route REQUEST.json            # print the routed wire as JSON
    python -m autowire route REQUEST.json --strategy basic
    python -m autowire route REQUEST.json --overlap -v
    python -m autowire strategies                    # list router presets
"""

import json
import logging
import sys

USAGE = "Usage: python -m autowire route REQUEST.json [--strategy NAME] [--overlap] [-v]\n" \
        "       python -m autowire strategies"


def main():
    args = sys.argv[1:]
    cmd = args[0] if args else ""

    from autowire.router import RouterConfig, Strategy

    if cmd == "route":
        path = None
        strategy = Strategy.NET_AWARE.value
        overlap = False
        verbose = False
        i = 1
        while i < len(args):
            a = args[i]
            if a == "--strategy" and i + 1 < len(args):
                strategy = args[i + 1]
                i += 1
            elif a == "--overlap":
                overlap = True
            elif a in ("-v", "--verbose"):
                verbose = True
            elif path is None:
                path = a
            i += 1

        if path is None:
            print(USAGE)
            sys.exit(1)

        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

        if strategy not in {s.value for s in Strategy}:
            print(f"Unknown strategy: {strategy}")
            sys.exit(1)

        from autowire.router import RequestError, parse_request, result_to_dict, route_wire

        try:
            with open(path, encoding="utf-8") as f:
                request = parse_request(json.load(f))
        except (OSError, json.JSONDecodeError, RequestError) as exc:
            print(f"Cannot read request {path}: {exc}")
            sys.exit(1)

        config = RouterConfig.for_strategy(strategy, allow_overlap_stage=overlap)
        result = route_wire(request, config)
        print(json.dumps(result_to_dict(result), indent=2))
        if result.fallback:
            sys.exit(2)

    elif cmd == "strategies":
        for s in Strategy:
            stages = ", ".join(st.name for st in RouterConfig.for_strategy(s).stages())
            print(f"{s.value:<10} {stages}")
    else:
        print(f"Unknown command: {cmd}" if cmd else USAGE)
        if cmd:
            print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
