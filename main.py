import argparse
import logging
import os
import sys
from dataclasses import replace

from tech_classifier.config import get_config
from tech_classifier.run_pipeline import run_from_files
from tech_classifier.utils.exceptions import ConfigurationError

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(message)s')
logger = logging.getLogger(__name__)

def main():
    parser = argparse.ArgumentParser(description="Tech Occupation Classifier")
    parser.add_argument('--knowledge', required=True, help='O*NET Knowledge ratings (txt, csv or xlsx).')
    parser.add_argument('--skills', required=True, help='O*NET Skills ratings (txt, csv or xlsx).')
    parser.add_argument('--activities', required=True, help='O*NET Work Activities ratings (txt, csv or xlsx).')
    parser.add_argument('--crosswalk', required=True, help='O*NET-SOC to NOC crosswalk (csv or xlsx).')
    parser.add_argument('--config', type=str, help='Path to a YAML configuration file.')
    parser.add_argument('--output-dir', type=str, help='Directory for the output tables.')
    parser.add_argument('--tech-cutoff', type=float, help='Harmonic rank below which an occupation is tech.')
    parser.add_argument('--digital-cutoff', type=float, help='Digital harmonic rank below which a tech occupation is digital.')
    parser.add_argument('--components', type=int, help='Number of principal components to retain.')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='INFO', help='Log level.')
    args = parser.parse_args()

    logging.getLogger().setLevel(getattr(logging, args.log_level))

    for path in (args.knowledge, args.skills, args.activities, args.crosswalk):
        if not os.path.exists(path):
            logger.error(f"❌ Input file not found: {path}")
            sys.exit(1)

    try:
        config = get_config(args.config)

        if args.tech_cutoff is not None:
            config = replace(config, thresholds=replace(config.thresholds, tech_cutoff=args.tech_cutoff))
        if args.digital_cutoff is not None:
            config = replace(config, thresholds=replace(config.thresholds, digital_cutoff=args.digital_cutoff))
        if args.components is not None:
            config = replace(config, pca_config=replace(config.pca_config, n_components=args.components))
        if args.output_dir:
            config = replace(config, output_config=replace(config.output_config, output_dir=args.output_dir))

        config.validate()
    except ConfigurationError as e:
        logger.error(f"❌ Invalid configuration: {e}")
        sys.exit(1)

    try:
        logger.info("🚀 Starting tech occupation pipeline...")
        result = run_from_files(
            args.knowledge,
            args.skills,
            args.activities,
            args.crosswalk,
            config=config,
        )
        counts = result.summary.label_counts
        logger.info(
            f"✅ Pipeline completed successfully! {counts.tech} tech occupations "
            f"({counts.digital} digital, {counts.high_tech} high-tech) out of {len(result.classification)}."
        )
        if result.summary.unmatched_onet_codes:
            logger.warning(f"⚠️ {len(result.summary.unmatched_onet_codes)} O*NET codes had no crosswalk match.")

    except Exception as e:
        logger.error(f"❌ Pipeline failed: {e}", exc_info=True)
        sys.exit(1)

if __name__ == "__main__":
    main()
