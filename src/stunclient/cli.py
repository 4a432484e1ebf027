from __future__ import annotations

import argparse
import json
import logging
import socket

from .client import StunClient
from .config import ClientConfig
from .constants import DEFAULT_MAX_ATTEMPTS, DEFAULT_PORT, DEFAULT_SERVER, DEFAULT_SOFTWARE
from .errors import StunError
from .net import Impairment, UdpEndpoint

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_REPLY = 2


def positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return value


def resolve(host: str, port: int) -> tuple[str, int]:
    infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_DGRAM)
    return infos[0][4][0], infos[0][4][1]


def cmd_query(args: argparse.Namespace) -> int:
    config = ClientConfig(
        trace=args.trace,
        strict_replies=args.strict,
        max_attempts=args.max_attempts,
        software=args.software or None,
        fingerprint=not args.no_fingerprint,
    )
    try:
        server = resolve(args.server, args.port)
    except OSError as e:
        logging.error("cannot resolve %s: %s", args.server, e)
        return EXIT_ERROR

    impair = Impairment(args.loss_rate, args.delay_ms)
    with UdpEndpoint.bound(args.bind_host, args.bind_port, impairment=impair) as udp:
        client = StunClient(udp, server, config)
        try:
            result = client.binding(change_ip=args.change_ip, change_port=args.change_port)
        except StunError as e:
            logging.error("%s", e)
            return EXIT_ERROR
        local = udp.local_addr

    metrics = client.last_metrics
    if result is None:
        logging.error("no reply from %s:%d after %d attempts", server[0], server[1], config.max_attempts)
        return EXIT_NO_REPLY

    payload = {
        "server": f"{server[0]}:{server[1]}",
        "local": f"{local[0]}:{local[1]}",
        "mapped": str(result.mapped) if result.mapped else None,
        "source": str(result.source) if result.source else None,
        "changed": str(result.changed) if result.changed else None,
        "software": result.software,
        "attempts": result.attempts,
        "timeouts": metrics.timeouts if metrics else 0,
        "discarded": metrics.discarded if metrics else 0,
    }
    print(json.dumps(payload, indent=2) if args.json else payload)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="stunclient", description="STUN binding client (RFC 3489/5389).")
    p.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    query = sub.add_parser("query", help="send a binding request and print the mapped address")
    query.add_argument("--server", default=DEFAULT_SERVER)
    query.add_argument("--port", type=int, default=DEFAULT_PORT)
    query.add_argument("--bind-host", default="0.0.0.0")
    query.add_argument("--bind-port", type=int, default=0)
    query.add_argument("--change-ip", action="store_true", help="ask the server to reply from another IP")
    query.add_argument("--change-port", action="store_true", help="ask the server to reply from another port")
    query.add_argument("--max-attempts", type=positive_int, default=DEFAULT_MAX_ATTEMPTS)
    query.add_argument("--software", default=DEFAULT_SOFTWARE, help="SOFTWARE attribute; empty to omit")
    query.add_argument("--no-fingerprint", action="store_true")
    query.add_argument("--trace", action="store_true", help="hex-dump sent and received messages")
    query.add_argument("--strict", action="store_true", help="abort on an unparseable reply instead of ignoring it")
    query.add_argument("--loss-rate", type=float, default=0.0, help="simulate packet loss")
    query.add_argument("--delay-ms", type=int, default=0, help="simulate per-datagram delay")
    query.add_argument("--json", action="store_true")
    query.set_defaults(func=cmd_query)

    args = p.parse_args(argv)
    level = logging.INFO if args.trace and args.log_level == "WARNING" else getattr(logging, args.log_level)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
