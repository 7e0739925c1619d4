"""Command line interface for airfine.

Usage:
    airfine setup                                 # Interactive API key setup
    airfine setup --provider claude --api-key sk-...
    airfine transform -p "Text to improve"        # Uses the resolved provider
    echo "Text" | airfine transform -r gemini -q  # Prompt from stdin, raw output
    airfine models                                # List models of all configured providers
"""

import argparse
import asyncio
import getpass
import logging
import sys
from pathlib import Path

from airfine import __version__
from airfine.config import (
    PROVIDER_NAMES,
    default_config_path,
    load_settings,
    read_config_file,
    write_config_file,
)
from airfine.errors import AirfineError, ConfigurationError
from airfine.services.llm import PROVIDERS, get_model_suggestions, list_available_models
from airfine.services.llm.registry import PROVIDER_LABELS
from airfine.services.transform import DEFAULT_CONTEXT, OutcomeStatus, TransformRequest, run

logger = logging.getLogger(__name__)

# Expected API key prefixes, used for a warning only
KEY_PREFIXES = {
    "openai": "sk-",
    "claude": "sk-",
    "gemini": "",
}

SETUP_CHOICES = [
    ("openai", "OpenAI (GPT-4o, o-series)"),
    ("claude", "Anthropic (Claude)"),
    ("gemini", "Google (Gemini)"),
    ("default", "Set default provider"),
]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with its subcommands."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config",
        type=Path,
        help="Path to the config file (default: $AIRFINE_CONFIG or ~/.config/airfine/config.json).",
    )
    common.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        action="store_true",
        help="Verbose logging.",
    )

    parser = argparse.ArgumentParser(
        prog="airfine",
        description="A minimal LLM-based text refinement CLI.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    transform = subparsers.add_parser(
        "transform",
        parents=[common],
        help="Transform text using an LLM.",
        description="Transform text using an LLM.",
    )
    transform.add_argument(
        "-p",
        "--prompt",
        dest="prompt",
        help="The prompt text to transform (default: read from stdin).",
    )
    transform.add_argument(
        "-c",
        "--context",
        dest="context",
        default=DEFAULT_CONTEXT,
        help="System context for the transformation.",
    )
    transform.add_argument(
        "-m",
        "--model",
        dest="model",
        help="Model to use (provider-specific).",
    )
    transform.add_argument(
        "-r",
        "--provider",
        dest="provider",
        help="LLM provider to use (openai, claude, gemini).",
    )
    transform.add_argument(
        "-q",
        "--quiet",
        dest="quiet",
        action="store_true",
        help="Output only the result text without any logs.",
    )
    transform.add_argument(
        "--raw",
        dest="quiet",
        action="store_true",
        help="Alias for --quiet.",
    )
    transform.set_defaults(handler=cmd_transform)

    setup = subparsers.add_parser(
        "setup",
        parents=[common],
        help="Set up API keys for LLM providers.",
        description="Set up API keys and defaults. Prompts interactively when no option is given.",
    )
    setup.add_argument(
        "--provider",
        dest="provider",
        choices=PROVIDER_NAMES,
        help="Provider whose API key to store.",
    )
    setup.add_argument(
        "--api-key",
        dest="api_key",
        help="API key to store (prompted for when omitted).",
    )
    setup.add_argument(
        "--default-provider",
        dest="default_provider",
        choices=PROVIDER_NAMES,
        help="Provider to use when none is requested.",
    )
    setup.add_argument(
        "--default-model",
        dest="default_models",
        action="append",
        metavar="PROVIDER=MODEL",
        help="Default model for a provider (repeatable).",
    )
    setup.set_defaults(handler=cmd_setup)

    models = subparsers.add_parser(
        "models",
        parents=[common],
        help="List available models.",
        description="List models available to the configured API keys.",
    )
    models.add_argument(
        "--provider",
        dest="provider",
        choices=PROVIDER_NAMES,
        help="Only list models for this provider.",
    )
    models.add_argument(
        "--suggested",
        dest="suggested",
        action="store_true",
        help="Show the curated model suggestions instead of querying the APIs.",
    )
    models.set_defaults(handler=cmd_models)

    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging for one CLI run."""
    if quiet:
        level = logging.CRITICAL + 1
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _color(text: str, code: str) -> str:
    if sys.stderr.isatty():
        return f"\033[{code}m{text}\033[0m"
    return text


def _status(message: str, code: str = "34") -> None:
    print(_color(message, code), file=sys.stderr)


def _error(message: str) -> None:
    print(_color(message, "31"), file=sys.stderr)


def read_prompt(prompt: str | None) -> str:
    """Return the prompt option, falling back to piped stdin."""
    if prompt:
        return prompt
    if not sys.stdin.isatty():
        return sys.stdin.read().strip()
    return ""


def cmd_transform(args: argparse.Namespace) -> int:
    """Run a transformation and print the result."""
    quiet = args.quiet

    def announce(provider: str, model: str) -> None:
        _status(f"Starting text transformation using {provider} ({model})...")

    try:
        settings = load_settings(args.config)
        request = TransformRequest(
            prompt=read_prompt(args.prompt),
            context=args.context,
            provider=args.provider or None,
            model=args.model,
        )
        outcome = asyncio.run(run(request, settings, on_start=None if quiet else announce))
    except AirfineError as e:
        if not quiet:
            _error(f"Error: {e}")
        return 1

    if outcome.status == OutcomeStatus.SUCCESS:
        if quiet:
            sys.stdout.write(outcome.text)
        else:
            print(f"\n{outcome.text}\n")
        return 0

    if not quiet:
        if outcome.status == OutcomeStatus.EMPTY:
            _status("Empty response from API.", "33")
        else:
            _error(f"Error: {outcome.message}")
    return 1


def _store_key(data: dict, provider: str, api_key: str) -> None:
    api_key = api_key.strip()
    if not api_key:
        raise ConfigurationError("API key is required")
    prefix = KEY_PREFIXES[provider]
    if prefix and not api_key.startswith(prefix):
        _status(f"Warning: {provider} API keys typically start with \"{prefix}\"", "33")
    data[f"{provider}_api_key"] = api_key
    # The first configured provider becomes the default
    if not data.get("default_provider"):
        data["default_provider"] = provider


def _ask_choice(question: str, options: list[tuple[str, str]], default: str | None = None) -> str:
    print(question)
    for index, (value, label) in enumerate(options, start=1):
        marker = " (current)" if value == default else ""
        print(f"  {index}) {label}{marker}")
    while True:
        answer = input("> ").strip()
        if not answer and default:
            return default
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1][0]
        print(f"Please enter a number between 1 and {len(options)}.")


def _interactive_setup(data: dict, path: Path) -> None:
    _status("airfine Setup")
    print("Set up API keys for LLM providers.")
    _status(f"API keys will be saved to {path}", "33")

    choice = _ask_choice("Select a provider to configure:", SETUP_CHOICES)
    if choice == "default":
        provider = _ask_choice(
            "Select the default provider to use:",
            SETUP_CHOICES[:-1],
            default=data.get("default_provider") or "openai",
        )
        data["default_provider"] = provider
        write_config_file(data, path)
        _status(f"Default provider set to {provider}!", "32")
        return

    label = dict(SETUP_CHOICES)[choice]
    while True:
        api_key = getpass.getpass(f"Enter your {label} API key: ")
        if api_key.strip():
            break
        print("API key is required")
    _store_key(data, choice, api_key)
    write_config_file(data, path)
    _status("API key saved!", "32")
    _status("Setup complete. Use the `airfine transform` command to transform text.")


def cmd_setup(args: argparse.Namespace) -> int:
    """Store API keys and defaults in the config file."""
    path = args.config or default_config_path()
    try:
        data = read_config_file(path)
    except ConfigurationError as e:
        logger.warning(f"{e}. Starting from an empty configuration.")
        data = {}

    if not (args.provider or args.api_key or args.default_provider or args.default_models):
        _interactive_setup(data, path)
        return 0

    try:
        if args.api_key and not args.provider:
            raise ConfigurationError("--api-key requires --provider")
        if args.provider:
            api_key = args.api_key or getpass.getpass(f"Enter your {PROVIDER_LABELS[args.provider]} API key: ")
            _store_key(data, args.provider, api_key)
        if args.default_provider:
            data["default_provider"] = args.default_provider
        for item in args.default_models or []:
            provider, _, model = item.partition("=")
            if provider not in PROVIDER_NAMES or not model.strip():
                raise ConfigurationError(f"Invalid --default-model value: {item} (expected PROVIDER=MODEL)")
            data.setdefault("default_models", {})[provider] = model.strip()
    except ConfigurationError as e:
        _error(f"Error: {e}")
        return 1

    write_config_file(data, path)
    _status("Configuration saved!", "32")
    return 0


def cmd_models(args: argparse.Namespace) -> int:
    """Print available or suggested models per provider."""
    names = [args.provider] if args.provider else list(PROVIDER_NAMES)

    if args.suggested:
        for name in names:
            print(f"{PROVIDER_LABELS[name]}:")
            for model in get_model_suggestions(name):
                print(f"  {model}")
        return 0

    try:
        settings = load_settings(args.config)
    except AirfineError as e:
        _error(f"Error: {e}")
        return 1

    if not settings.credentialed_providers():
        _error("Error: No API keys configured. Run `airfine setup` to configure.")
        return 1
    if args.provider and not settings.api_key_for(args.provider):
        _error(f"Error: {PROVIDER_LABELS[args.provider]} API key not found. Run `airfine setup` to configure.")
        return 1

    models = asyncio.run(list_available_models(settings, providers=names))
    for name, model_ids in models.items():
        current = settings.default_model_for(name) or PROVIDERS[name].fallback_model
        print(f"{PROVIDER_LABELS[name]}:")
        if not model_ids:
            print("  (no models available)")
        for model in model_ids:
            marker = " (default)" if model == current else ""
            print(f"  {model}{marker}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "handler", None):
        parser.print_help()
        return 0
    configure_logging(verbose=args.verbose, quiet=getattr(args, "quiet", False))
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
