from __future__ import annotations

from typing import Any

from desilofhe import Engine


class EngineContext:
    """High-level container that owns an Engine and the keys the step circuit needs."""

    def __init__(self,
                 *,
                 max_level: int = 20,
                 mode: str = 'cpu',
                 thread_count: int = 0,
                 device_id: int = 0) -> None:
        """Create a leveled (non-bootstrapping) Engine and generate its keys.

        The step circuit's depth is known once the config is, so a leveled engine with
        ``max_level`` at least that depth is all it takes; no rotation,
        conjugation or bootstrap keys are generated.
        """
        self.max_level = max_level
        self.engine = Engine(
            max_level=max_level,
            mode=mode,
            thread_count=thread_count,
            device_id=device_id,
        )

        self.secret_key = self.engine.create_secret_key()
        self.public_key = self.engine.create_public_key(self.secret_key)
        self.relinearization_key = self.engine.create_relinearization_key(self.secret_key)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"EngineContext(engine=Engine(slot_count={self.engine.slot_count}, "
            f"max_level={self.max_level}), keys=[sk, pk, rlk])"
        )

    def encrypt(self, data: Any):
        return self.engine.encrypt(data, self.public_key)

    def decrypt(self, ct):
        return self.engine.decrypt(ct, self.secret_key)
