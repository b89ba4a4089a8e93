import argparse


class ArgParsers:
    """
    Collection of argparsers
    """

    @staticmethod
    def store_builder_parser() -> argparse.ArgumentParser:
        """
        Compound store builder parser. Takes the path to a store_builder.yaml config file, and optionally overrides
        the config's overwrite setting.
        :return: instantiated ArgumentParser
        """
        parser = argparse.ArgumentParser(
            description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter
        )
        parser.add_argument(
            "-c",
            "--config",
            required=True,
            help="Absolute path to the store_builder.yaml file",
        )
        parser.add_argument(
            "-o",
            "--overwrite",
            action="store_true",
            help="replace an existing store at the destination",
        )
        return parser
