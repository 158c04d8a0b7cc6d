from tg_initdata.security.errors import USER_MESSAGES, FailureReason, InitDataDecodeError
from tg_initdata.security.init_data import (
    InitDataCheck,
    build_data_check_string,
    calc_init_data_hash,
    check_init_data,
    derive_secret_key,
    parse_init_data,
    sign_init_data,
    verify_init_data,
)

__all__ = [
    "USER_MESSAGES",
    "FailureReason",
    "InitDataCheck",
    "InitDataDecodeError",
    "build_data_check_string",
    "calc_init_data_hash",
    "check_init_data",
    "derive_secret_key",
    "parse_init_data",
    "sign_init_data",
    "verify_init_data",
]
