"""

Command line utility to convert an Avro schema to JSON Schema.

"""


import argparse
import logging
import sys

from avrotojsonschema import _version
from avrotojsonschema.avrotojsons import convert_avro_to_json_schema, convert_avro_to_json_schema_string
from avrotojsonschema.errors import AvroToJsonSchemaError
from avrotojsonschema.typemodel import UNION_ENCODINGS


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(description='Convert an Avro schema to JSON Schema.')
    parser.add_argument('avsc', nargs='?', type=str, help='Path to the Avro schema file. Reads stdin if omitted.')
    parser.add_argument('--out', type=str, help='Path of the JSON schema file to write. Writes to stdout if omitted.')
    parser.add_argument('--wrap-unions', type=str, choices=UNION_ENCODINGS, default='auto',
                        help='Union encoding to assume for the Avro schema.')
    parser.add_argument('--strict-logical-types', action='store_true',
                        help='Fail on logical types that have no converter instead of using the base type.')
    parser.add_argument('--version', action='store_true', help='Print the version.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log conversion details.')
    return parser


def main(argv=None):
    """Main function for the command line utility."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f'avrotojsonschema {_version.version}')
        return

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        if args.avsc and args.out:
            convert_avro_to_json_schema(args.avsc, args.out,
                                        wrap_unions=args.wrap_unions,
                                        strict_logical_types=args.strict_logical_types)
            return
        if args.avsc:
            with open(args.avsc, 'r', encoding='utf-8') as f:
                text = f.read()
        else:
            text = sys.stdin.read()
        json_text = convert_avro_to_json_schema_string(text,
                                                       wrap_unions=args.wrap_unions,
                                                       strict_logical_types=args.strict_logical_types)
        if args.out:
            with open(args.out, 'w', encoding='utf-8') as f:
                f.write(json_text)
        else:
            sys.stdout.write(json_text + '\n')
    except (AvroToJsonSchemaError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
