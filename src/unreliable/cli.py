from __future__ import annotations

import argparse
import json
import logging

from .constants import DEFAULT_LISTEN_HOST, DEFAULT_TIMEOUT_MS, LOG_FORMAT
from .net import Impairment, bind_udp, resolve_udp, wrap
from .session import UnreliableSocket


def _emit(args: argparse.Namespace, payload: dict) -> None:
    print(json.dumps(payload, indent=2) if args.json else payload)


def cmd_listen(args: argparse.Namespace) -> int:
    impair = Impairment(args.loss_rate, args.delay_ms)
    sock = wrap(bind_udp(args.listen_host, args.listen_port, timeout_ms=args.timeout_ms), impair, name="listen")

    with UnreliableSocket(sock) as us:
        for _ in range(args.count):
            try:
                data = us.input_stream.read()
            except TimeoutError:
                logging.error("no datagram within %d ms", args.timeout_ms)
                return 1
            sender = us.input_stream.sender
            _emit(args, {"role": "listen", "from": str(sender), "bytes": len(data), "data": data.decode("utf-8", "replace")})

            if args.echo and sender is not None:
                us.connect(sender.address, sender.port)
                us.output_stream.write(data)
                us.output_stream.flush()
                # accept from anyone again for the next datagram
                us.disconnect()
    return 0


def cmd_send(args: argparse.Namespace) -> int:
    impair = Impairment(args.loss_rate, args.delay_ms)
    sock = wrap(bind_udp("0.0.0.0", args.bind_port, timeout_ms=args.timeout_ms), impair, name="send")

    with UnreliableSocket(sock) as us:
        us.connect(*resolve_udp(args.dest_host, args.dest_port))
        payload = args.message.encode("utf-8")
        us.output_stream.write(payload)
        us.output_stream.flush()
        _emit(args, {"role": "send", "to": str(us.endpoint), "bytes": len(payload)})

        if args.wait_reply:
            try:
                reply = us.input_stream.read()
            except TimeoutError:
                logging.error("no reply from %s within %d ms", us.endpoint, args.timeout_ms)
                return 1
            _emit(args, {"role": "reply", "from": str(us.input_stream.sender), "bytes": len(reply), "data": reply.decode("utf-8", "replace")})
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="unreliable", description="Stream-style datagrams over UDP, no delivery guarantees.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("--timeout-ms", type=int, default=DEFAULT_TIMEOUT_MS, help="read timeout, 0 waits forever")
        x.add_argument("--loss-rate", type=float, default=0.0, help="simulate outbound datagram loss")
        x.add_argument("--delay-ms", type=int, default=0, help="simulate outbound send delay")
        x.add_argument("--json", action="store_true")

    listen = sub.add_parser("listen", help="print datagrams received on a local port")
    add_common(listen)
    listen.add_argument("--listen-host", default=DEFAULT_LISTEN_HOST)
    listen.add_argument("--listen-port", type=int, required=True)
    listen.add_argument("--count", type=int, default=1, help="number of datagrams to receive")
    listen.add_argument("--echo", action="store_true", help="send each datagram back to its sender")
    listen.set_defaults(func=cmd_listen)

    send = sub.add_parser("send", help="send one datagram")
    add_common(send)
    send.add_argument("--dest-host", required=True)
    send.add_argument("--dest-port", type=int, required=True)
    send.add_argument("--bind-port", type=int, default=0)
    send.add_argument("--message", required=True)
    send.add_argument("--wait-reply", action="store_true", help="wait for one datagram back from the destination")
    send.set_defaults(func=cmd_send)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
