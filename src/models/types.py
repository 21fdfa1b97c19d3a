"""공용 타입 정의.

이 모듈은 여러 레이어에서 공통으로 사용되는 상수와 타입 별칭을 정의합니다.
Vault, Strategy, Config 등 다양한 모듈에서 순환 참조 없이 사용할 수 있습니다.

Rules Applied:
    - #10 Python Standards: Modern typing (X | None, list[])
    - #16 Basedpyright Typing: type keyword for aliases
    - #01 Project Structure: Dependency flow (Models can be imported by all layers)
"""

from enum import Enum
from typing import TypeAlias

Address: TypeAlias = str
"""계정 식별자 (depositor, vault, strategy, fee recipient 모두 동일 타입)."""

# Basis point 분모 (10000 = 100%)
MAX_BPS = 10_000

# 주소로 사용할 수 없는 값
ZERO_ADDRESS: Address = "0x0"


class VaultOperation(str, Enum):
    """Ledger를 변경하는 진입점 이름.

    Reentrancy guard와 로그 컨텍스트에서 현재 실행 중인 작업을 식별합니다.
    """

    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    REGISTER = "register"
    DEREGISTER = "deregister"
    UPDATE_TARGET = "update_target"
    RECONCILE = "reconcile"
    DEPLOY = "deploy"
    SET_FEE = "set_performance_fee"
    SET_FEE_RECIPIENT = "set_fee_recipient"
    SET_OPERATOR = "set_operator"


def is_zero_address(address: str | None) -> bool:
    """빈 문자열, None, ZERO_ADDRESS 여부."""
    return not address or address == ZERO_ADDRESS


def bps_of(amount: int, bps: int) -> int:
    """amount * bps / 10000 (내림)."""
    return amount * bps // MAX_BPS
