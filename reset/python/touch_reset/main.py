import argparse
import logging
import sys
from functools import partial
from typing import List, Optional

from touch_reset.config_loader import load_config, require_keys, timings_from_config
from touch_reset.comms.ports import describe_serial_ports
from touch_reset.comms.touch import touch_1200bps
from touch_reset.comms.types import ResetError, ResetProgressCallbacks
from touch_reset.controller.reset import ResetController
from touch_reset.controller.states import ResetState, ui_label


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="touch-reset",
        description="Reset a board with a 1200-bps touch and find its bootloader port",
    )
    parser.add_argument("port", nargs="?", default="",
                        help="serial port to touch, e.g. /dev/ttyACM0 or COM5")
    parser.add_argument("--wait", action="store_true",
                        help="wait for the bootloader port and print it")
    parser.add_argument("--dry-run", action="store_true",
                        help="emulate the reset without opening any port")
    parser.add_argument("--list", action="store_true",
                        help="list visible serial ports and exit")
    parser.add_argument("--config", default="reset_default.yaml",
                        help="bundled config name, or a path to a YAML file")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="print debug messages")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.list:
            for device, desc in describe_serial_ports():
                print(f"{device}\t{desc}")
            return 0

        # --------------------------------
        # Load and Validate Configurations
        # --------------------------------
        cfg = load_config(args.config)
        require_keys(cfg, {
            "reset": [
                "timeout_s",
                "dry_run_timeout_s",
                "debounce_s",
                "poll_interval_s",
            ],
            "touch": [
                "baud",
                "settle_s",
                "clear_dtr",
            ],
        })
        timings = timings_from_config(cfg)

        touch_cfg = cfg["touch"]
        clear_dtr = touch_cfg["clear_dtr"]
        toucher = partial(
            touch_1200bps,
            baud=int(touch_cfg["baud"]),
            clear_dtr=None if clear_dtr is None else bool(clear_dtr),
            settle_s=timings.touch_settle_s,
        )

        cb = ResetProgressCallbacks(
            touching_port=lambda p: print(f"Touching port {p} at 1200bps ... "),
            waiting_for_new_serial=lambda: print("Waiting for upload port ... "),
            debug=(lambda msg: print(f"  {msg}")) if args.verbose else None,
        )

        controller = ResetController(
            port_to_touch=args.port,
            wait=args.wait,
            dry_run=args.dry_run,
            cb=cb,
            timings=timings,
            toucher=toucher,
        )
        found = controller.run()

    except (ResetError, KeyError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.wait:
        return 0

    if controller.state == ResetState.TIMED_OUT:
        print(f"{ui_label(controller.state)}: no bootloader port found", file=sys.stderr)
        return 2

    print(found)
    return 0


if __name__ == "__main__":
    sys.exit(main())
