#!/usr/bin/env python3
"""Resolve configuration properties once using the CASCADE_* settings.

Builds the same handler chain a service would, runs the two-phase startup,
and prints the typed value of each requested key.

Usage:
    python scripts/resolve_property.py FOO
    python scripts/resolve_property.py FOO --type number
    CASCADE_PROPERTY_HANDLER=remote_store CASCADE_STORE_NAME=my-store \\
        python scripts/resolve_property.py feature.checkout --type feature

Options:
    --type      Value type: string, number, boolean, regexp, object, feature
                (default: string)
    --default   Value printed when the key does not exist
    --env-file  Dotenv file loaded before settings (default: .env)

Exit status is 0 on success, 1 when a key fails to resolve, and 2 when the
handler cannot be built or started.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

TYPES = ("string", "number", "boolean", "regexp", "object", "feature")


async def _resolve(keys: list[str], value_type: str, default: str | None) -> int:
    from cascade.config import configure_logging, get_settings
    from cascade.configuration import Configuration
    from cascade.exception import CascadeException
    from cascade.properties.factory import build_property_handler

    settings = get_settings()
    configure_logging(settings)

    config = Configuration("resolve_property")
    try:
        config.set_property_handler(build_property_handler(settings))
        await config.bootstrap()
    except CascadeException as e:
        print(f"startup: error [{e.code}] {e.message}", file=sys.stderr)
        await config.close()
        return 2

    exit_code = 0
    try:
        for key in keys:
            try:
                if value_type == "number":
                    value = await config.get_number(key)
                elif value_type == "boolean":
                    value = await config.get_boolean(key)
                elif value_type == "regexp":
                    pattern = await config.get_regexp(key)
                    value = None if pattern is None else pattern.pattern
                elif value_type == "object":
                    value = await config.get_object(key)
                elif value_type == "feature":
                    value = await config.is_feature_enabled(key)
                else:
                    value = await config.get_property(key)
            except CascadeException as e:
                print(f"{key}: error [{e.code}] {e.message}", file=sys.stderr)
                exit_code = 1
                continue

            if value is None:
                value = default
            print(f"{key} = {json.dumps(value)}")
    finally:
        await config.close()

    return exit_code


def main() -> None:
    """Parse arguments and resolve the requested keys."""
    parser = argparse.ArgumentParser(
        description="Resolve configuration properties using CASCADE_* settings"
    )
    parser.add_argument("keys", nargs="+", help="Property keys to resolve")
    parser.add_argument(
        "--type", dest="value_type", choices=TYPES, default="string", help="Value type"
    )
    parser.add_argument("--default", default=None, help="Value for missing keys")
    parser.add_argument("--env-file", default=".env", help="Dotenv file to load")
    args = parser.parse_args()

    load_dotenv(dotenv_path=args.env_file)
    sys.exit(asyncio.run(_resolve(args.keys, args.value_type, args.default)))


if __name__ == "__main__":
    main()
