"""
Optional Parameter Store bootstrap for deployed quiz services.

Enabled with USE_PARAMETER_STORE=true. Fetched values are written to
os.environ before Settings is first built.
"""

import logging
import os

logger = logging.getLogger(__name__)

# parameter suffix under the env prefix -> Settings env alias
_PARAM_MAP: dict[str, str] = {
    "QUIZ_API_KEY": "API_KEY",
    "HF_API_KEY": "HF_API_KEY",
    "INFERENCE_URL": "INFERENCE_URL",
    "INFERENCE_TIMEOUT_SECONDS": "INFERENCE_TIMEOUT_SECONDS",
    "SLIDE_DECK_MAX_SLIDES": "SLIDE_DECK_MAX_SLIDES",
    "MAX_UPLOAD_BYTES": "MAX_UPLOAD_BYTES",
}


def parameter_prefix() -> str:
    return f"/studyquest/{os.getenv('STUDYQUEST_ENV', 'dev')}"


def load_ssm_parameters() -> int:
    """Copy quiz settings from Parameter Store into the environment.

    Returns how many environment variables were set.
    """
    if os.getenv("USE_PARAMETER_STORE", "").lower() != "true":
        logger.info("parameter store disabled; using local environment")
        return 0

    try:
        import boto3
    except ImportError:
        logger.warning("parameter store requested but boto3 is missing (install the 'ssm' extra)")
        return 0

    prefix = parameter_prefix()
    names = {f"{prefix}/{suffix}": env_key for suffix, env_key in _PARAM_MAP.items()}
    client = boto3.client("ssm", region_name=os.getenv("AWS_REGION", "us-east-1"))

    try:
        resp = client.get_parameters(Names=list(names), WithDecryption=True)
    except Exception:
        logger.warning("parameter store lookup failed under %s", prefix, exc_info=True)
        return 0

    for param in resp.get("Parameters", []):
        os.environ[names[param["Name"]]] = param["Value"]
    missing = resp.get("InvalidParameters", [])
    if missing:
        logger.debug("absent from parameter store: %s", ", ".join(missing))

    loaded = len(resp.get("Parameters", []))
    logger.info("quiz settings from parameter store", extra={"prefix": prefix, "loaded": loaded})
    return loaded
