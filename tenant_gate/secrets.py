"""
Secret loading for signing keys and database credentials

Lookup order:
1. Mounted secret file (/run/secrets/<secret_name>)
2. File named by the <SECRET_NAME>_FILE environment variable
3. <SECRET_NAME> environment variable
4. Caller-supplied default

Example:
    jwt_secret_key: str = Field(
        default_factory=lambda: load_secret("jwt_secret_key", default="dev-only-...")
    )
"""
import os
from pathlib import Path
from typing import Optional
import structlog

logger = structlog.get_logger()

SECRETS_DIR = Path("/run/secrets")

WEAK_MARKERS = ("change-me", "changeme", "password", "secret", "dev-only")


def load_secret(
    secret_name: str,
    default: Optional[str] = None,
    required: bool = False,
    secrets_dir: Path = SECRETS_DIR
) -> Optional[str]:
    """
    Resolve a secret through the mounted-file / env-file / env-var chain

    Raises:
        ValueError: required secret missing everywhere and no default given
        FileNotFoundError: <NAME>_FILE points at a file that does not exist
    """
    name = secret_name.lower().replace("-", "_")
    env_name = name.upper()

    mounted = secrets_dir / name
    if mounted.is_file():
        logger.debug("secret_loaded", secret_name=name, source="mounted_file")
        return mounted.read_text().strip()

    file_var = f"{env_name}_FILE"
    file_path = os.getenv(file_var)
    if file_path:
        path = Path(file_path)
        if not path.is_file():
            raise FileNotFoundError(
                f"Secret file specified by {file_var}={file_path} does not exist"
            )
        logger.debug("secret_loaded", secret_name=name, source="env_file")
        return path.read_text().strip()

    value = os.getenv(env_name)
    if value:
        logger.debug("secret_loaded", secret_name=name, source="env_var")
        return value

    if default is not None:
        logger.debug("secret_loaded", secret_name=name, source="default", is_production_safe=False)
        return default

    if required:
        raise ValueError(
            f"Required secret '{name}' not found. "
            f"Checked: {mounted}, {file_var}, {env_name}"
        )

    logger.warning("secret_not_found", secret_name=name)
    return None


def validate_secret_strength(secret_value: str, min_length: int = 32, secret_name: str = "secret") -> bool:
    """
    Reject empty or short secrets, warn on obviously weak ones

    Raises:
        ValueError: if the secret is empty or shorter than min_length
    """
    if not secret_value:
        raise ValueError(f"Secret '{secret_name}' is empty")

    if len(secret_value) < min_length:
        raise ValueError(
            f"Secret '{secret_name}' is too short "
            f"({len(secret_value)} chars, minimum {min_length})"
        )

    lowered = secret_value.lower()
    for marker in WEAK_MARKERS:
        if marker in lowered:
            logger.warning("weak_secret_detected", secret_name=secret_name, reason=f"contains '{marker}'")
            break

    return True
