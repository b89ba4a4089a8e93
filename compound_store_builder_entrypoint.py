import logging
import sys

import yaml

from compound_common.argparse_classes.parsers import ArgParsers
from compound_common.config_classes.store_builder_config import StoreBuilderConfig
from compound_common.exceptions.store_exceptions import CompoundStoreError
from compound_common.timer import Timer
from compound_store_builder.build_compound_store import CompoundStoreBuilder
from compound_store_builder.metadata.metadata_registry import MetadataRegistry
from compound_store_builder.source_ingester import SourceIngester
from utils.command_line_utils import CommandLineUtils
from utils.general_file_utils import GeneralFileUtils


def main(args):
    # Extract command line arguments and ready up configs
    parser = ArgParsers.store_builder_parser()
    args = parser.parse_args(args)
    try:
        config = StoreBuilderConfig(**GeneralFileUtils.open_yaml_file(args.config))
    except (OSError, ValueError, yaml.YAMLError) as e:
        logging.exception(f"Could not load store builder config {args.config}: {str(e)}")
        return 1
    CommandLineUtils.readout(args, config)

    logging.basicConfig(
        level=logging.DEBUG if config.verbose_logging else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    overall_process_timer = Timer("compound store building process")

    try:
        # validated up front so a bad config never costs a full ingest
        metadata = MetadataRegistry.make_metadata(**config.metadata.model_dump())

        ingester = SourceIngester()
        batch = ingester.ingest_all(config.sources)
        print(
            f"Ingested {len(batch.compounds)} compounds and {len(batch.spectra)} spectra from {batch.source}, "
            f"{len(ingester.skipped)} records skipped and {len(ingester.dropped)} dropped"
        )

        store_path = CompoundStoreBuilder(
            location=config.destination,
            overwrite=config.overwrite or args.overwrite,
        ).build(batch.compounds, batch.spectra, metadata)
    except CompoundStoreError as e:
        logging.error(f"Compound store build failed: {str(e)}")
        return 1
    except (OSError, ValueError) as e:
        logging.exception(f"Compound store build failed: {str(e)}")
        return 1

    overall_process_timer.stop()
    print(f"Store written to {store_path}")
    print(overall_process_timer.readout())
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
