from __future__ import annotations

import argparse

from dana_relay.pipeline import format_message


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Print the Telegram message that would be sent for a submission."
    )
    parser.add_argument("phone", type=str)
    parser.add_argument("--pin", default=None)
    parser.add_argument("--otp", default=None)
    args = parser.parse_args(argv)

    # No validation here: this shows the layout, not whether the handler accepts it
    print(format_message(args.phone, pin=args.pin, otp=args.otp))


if __name__ == "__main__":
    main()
