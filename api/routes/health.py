from fastapi import APIRouter

import config as runner_config

router = APIRouter()


@router.get("/health")
def health_check():
    missing = runner_config.validate_server_config()

    return {
        "status": "ok",
        "missing_keys": missing,
        "max_result_limit": runner_config.MAX_RESULT_LIMIT,
        "default_result_limit": runner_config.DEFAULT_RESULT_LIMIT,
        "simulated_delay": runner_config.RUNNER_SIMULATED_DELAY,
    }
