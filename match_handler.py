"""
Entry point for matching runs.
This handler is a lightweight entry point that delegates to the MatchOrchestrator.
"""

import json
import os
import logging
import sys
from typing import Dict, Any, Optional

from stylematch.config_loader import MatcherConfiguration
from stylematch.orchestration import MatchOrchestrator

# Configure logger
log_level = os.getenv("STYLEMATCH_LOG_LEVEL", "INFO").upper()
numeric_level = getattr(logging, log_level, logging.INFO)
logging.basicConfig(
    level=numeric_level,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)


def build_orchestrator(config_file: Optional[str] = None) -> MatchOrchestrator:
    config_file = config_file or os.getenv("STYLEMATCH_CONFIG_FILE")
    if config_file and config_file.endswith('.json'):
        configuration = MatcherConfiguration(json_file=config_file)
    elif config_file:
        configuration = MatcherConfiguration(yaml_file=config_file)
    else:
        configuration = MatcherConfiguration()

    package_level = str(configuration.get('logging.level', log_level)).upper()
    logging.getLogger('stylematch').setLevel(getattr(logging, package_level, numeric_level))
    return MatchOrchestrator(configuration)


def match_handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    Handler that delegates to the MatchOrchestrator.

    Args:
        event: Dict with 'rules', 'elements' and optional 'context' and 'config_file'.
        context: Caller context object, unused.

    Returns:
        A dictionary with the result of the matching run.
    """
    logger.info("Match handler invoked with %d rules", len(event.get('rules') or []))

    try:
        orchestrator = build_orchestrator(event.get('config_file'))
        result = orchestrator.run(event)
        logger.info("Match handler completed successfully.")
        return result

    except Exception as e:
        logger.exception("Error during matching run")
        return {
            "statusCode": 500,
            "error": str(e),
            "error_type": type(e).__name__,
        }


# For local testing
if __name__ == "__main__":
    if len(sys.argv) > 1:
        with open(sys.argv[1]) as f:
            test_event = json.load(f)
    else:
        test_event = {
            "rules": [
                {"type": "paragraph", "options": {"styleName": "Heading 1"}},
                {"type": "bold"},
                {"type": "paragrap"},
            ],
            "elements": [
                {
                    "type": "paragraph",
                    "styleId": "Heading1",
                    "styleName": "Heading 1",
                    "children": [
                        {"type": "run", "children": [{"type": "bold", "children": []}]}
                    ],
                },
                {"type": "paragraph", "styleName": "Normal"},
            ],
        }

    result = match_handler(test_event)
    print(json.dumps(result, indent=2, default=str))
