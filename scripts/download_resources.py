import sys
import logging
import argparse
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from argsearch.config import DEFAULT_CONFIG_PATH, load_config
from argsearch.ingress import ResourceFetcher

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Download stop lists and dictionaries listed in the config")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH))
    args = parser.parse_args()

    config = load_config(args.config)
    files = ResourceFetcher(config.resources_dir).run(config.resources)

    for name, path in files.items():
        logger.info(f"{name}: {path}")
    logger.info("All resources downloaded successfully.")


if __name__ == "__main__":
    main()
