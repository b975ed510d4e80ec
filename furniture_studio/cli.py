# cli.py
import argparse
import logging
import sys
from pathlib import Path

from .brand import generate_brand_context
from .client import GenerationClient
from .config import StudioSettings
from .errors import StudioError
from .export import save_asset
from .loader import load_brand, load_render_request, save_brand
from .models import ASPECT_RATIOS, IMAGE_SIZES, GenerationConfig
from .orchestrator import ConsistencyOrchestrator
from .prompts import MAX_VIEWS_PER_BUNDLE, VIEW_TYPES, assemble_furniture_prompt
from .references import load_image


def _add_brand_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--brand",
        required=True,
        type=Path,
        help="Path to a brand context YAML/JSON file (see the 'brand' command).",
    )


def _add_output_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        required=True,
        type=Path,
        help="Directory where generated assets will be written.",
    )


def _add_source_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source",
        required=True,
        help="Base image to work on (file path or data URL).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="furniture-studio",
        description="Generate and refine brand-consistent furniture renders with Gemini.",
    )
    parser.add_argument(
        "--log",
        required=False,
        type=Path,
        help="Optional path to a log file.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    brand = sub.add_parser("brand", help="Generate a brand context (system prompt).")
    brand.add_argument("--name", required=True)
    brand.add_argument("--sector", default="")
    brand.add_argument("--market", default="")
    brand.add_argument("--aesthetic", default="", help="Free text aesthetic description.")
    brand.add_argument("--out", required=True, type=Path, help="Where to save the brand file.")

    prompt = sub.add_parser("prompt", help="Print the assembled prompt without calling the API.")
    _add_brand_arg(prompt)
    prompt.add_argument("--request", required=True, type=Path)

    render = sub.add_parser("render", help="Render a piece from a request file.")
    _add_brand_arg(render)
    render.add_argument("--request", required=True, type=Path)
    render.add_argument(
        "--anchor",
        required=False,
        help="Optional source image whose visual DNA anchors the render.",
    )
    _add_output_arg(render)

    views = sub.add_parser("views", help="Generate consistent alternate views of a base image.")
    _add_brand_arg(views)
    _add_source_arg(views)
    views.add_argument(
        "--view",
        action="append",
        required=True,
        help=f"Camera view, repeatable up to {MAX_VIEWS_PER_BUNDLE} times "
             f"(e.g. {', '.join(VIEW_TYPES[:4])}).",
    )
    views.add_argument("--ratio", default="1:1", choices=ASPECT_RATIOS)
    views.add_argument("--size", default="1K", choices=IMAGE_SIZES)
    _add_output_arg(views)

    edit = sub.add_parser("edit", help="Apply an in-place edit to a base image.")
    _add_brand_arg(edit)
    _add_source_arg(edit)
    edit.add_argument("--instruction", required=True)
    _add_output_arg(edit)

    resize = sub.add_parser("resize", help="Adapt a base image to another aspect ratio.")
    _add_brand_arg(resize)
    _add_source_arg(resize)
    resize.add_argument("--ratio", required=True, choices=ASPECT_RATIOS)
    resize.add_argument("--size", default="1K", choices=IMAGE_SIZES)
    _add_output_arg(resize)

    video = sub.add_parser("video", help="Animate a base image into a short video.")
    _add_brand_arg(video)
    _add_source_arg(video)
    video.add_argument("--prompt", required=True)
    _add_output_arg(video)

    return parser


def configure_logging(log_path: Path | None) -> None:
    """
    Configure basic logging to stderr and optionally to a file.

    The format is kept simple so logs can be tailed during a session while
    still being parseable if you later ship them to a log aggregation system.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
        handlers=handlers,
    )


def _orchestrator(args: argparse.Namespace) -> ConsistencyOrchestrator:
    client = GenerationClient.from_settings(StudioSettings.from_env())
    return ConsistencyOrchestrator(client, load_brand(args.brand))


def run(args: argparse.Namespace) -> None:
    if args.command == "brand":
        client = GenerationClient.from_settings(StudioSettings.from_env())
        brand = generate_brand_context(
            client, args.name, args.sector, args.market, args.aesthetic
        )
        path = save_brand(brand, args.out)
        logging.info("Saved brand context for '%s' to %s", brand.name, path)
        return

    if args.command == "prompt":
        brand = load_brand(args.brand)
        request = load_render_request(args.request)
        print(
            assemble_furniture_prompt(
                brand_style=brand.style,
                dimensions=request.dimensions,
                product_desc=request.product_description,
                product_refs=request.product_refs,
                env_ref=request.environment,
                lighting=request.lighting,
                view=request.view,
                models=request.models,
            )
        )
        return

    orchestrator = _orchestrator(args)
    output_root: Path = args.output
    output_root.mkdir(parents=True, exist_ok=True)

    try:
        if args.command == "render":
            request = load_render_request(args.request)
            if args.anchor:
                orchestrator.set_source(load_image(args.anchor))
            results = [orchestrator.render(request, anchor_to_source=bool(args.anchor))]
        else:
            orchestrator.set_source(load_image(args.source))
            if args.command == "views":
                config = GenerationConfig(aspect_ratio=args.ratio, image_size=args.size)
                results = orchestrator.generate_views(args.view, config)
            elif args.command == "edit":
                results = [orchestrator.edit(args.instruction)]
            elif args.command == "resize":
                results = [orchestrator.resize(args.ratio, args.size)]
            else:
                results = [orchestrator.generate_video(args.prompt)]

        for result in results:
            save_asset(result.asset, output_root)
    finally:
        orchestrator.close()


def main() -> None:
    """
    Entry point for the CLI module.

    - Parses the command and configures logging.
    - Runs the command against the Gemini backend.
    - Reports the failed stage and exits non-zero on a studio error.
    """
    parser = build_parser()

    # If no arguments were supplied, show the help screen instead of failing
    # with a cryptic missing argument error.
    if len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args()
    configure_logging(args.log)

    try:
        run(args)
    except StudioError as exc:
        stage = exc.stage.value if exc.stage is not None else "request"
        logging.error("The %s step failed: %s", stage, exc)
        sys.exit(2)

    logging.info("Done.")


if __name__ == "__main__":
    main()
