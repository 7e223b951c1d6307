import argparse
import logging

from vncore.settings import load_settings
from vngame.host import ConsoleHost


def main(argv=None, *, out=None, input_func=None) -> int:
    parser = argparse.ArgumentParser(description="Play a dialogue story in the terminal.")
    parser.add_argument("--config", help="Path to a settings YAML file")
    parser.add_argument("--story", help="Story file to play instead of the configured one")
    parser.add_argument("--start", help="Node id to start from")
    parser.add_argument("--continue", dest="resume", action="store_true",
                        help="Load the configured save slot before starting")
    parser.add_argument("--instant", action="store_true", help="Show each line at once")
    args = parser.parse_args(argv)

    cfg = load_settings(args.config) if args.config else load_settings()
    if args.story:
        cfg.story.path = args.story
    if args.start:
        cfg.story.start = args.start
    logging.basicConfig(level=getattr(logging, cfg.log_level, logging.INFO),
                        format="%(levelname)s %(name)s: %(message)s")

    app = ConsoleHost(cfg, out=out, input_func=input_func, instant=args.instant)
    return app.run(resume=args.resume)


if __name__ == "__main__":
    raise SystemExit(main())
