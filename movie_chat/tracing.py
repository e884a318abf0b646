import os
from typing import List, Optional

from langfuse import Langfuse


LANGFUSE_PUBLIC_KEY = os.getenv("LANGFUSE_PUBLIC_KEY")
LANGFUSE_SECRET_KEY = os.getenv("LANGFUSE_SECRET_KEY")
LANGFUSE_HOST = os.getenv("LANGFUSE_HOST", "http://langfuse:3000")

langfuse: Optional[Langfuse] = (
    Langfuse(
        public_key=LANGFUSE_PUBLIC_KEY,
        secret_key=LANGFUSE_SECRET_KEY,
        host=LANGFUSE_HOST,
    )
    if LANGFUSE_PUBLIC_KEY and LANGFUSE_SECRET_KEY
    else None
)


# ============================================================
# Traces (Langfuse v2). Every function is a no-op without keys.
# ============================================================
def trace_extraction(user_id: int, session_id: int, message_id: int,
                     content: str, signals: List[dict]):
    if not langfuse:
        return

    trace = langfuse.trace(
        name="signal_extraction",
        user_id=str(user_id),
        session_id=str(session_id),
        metadata={"message_id": message_id},
        input=content,
    )
    trace.update(output=signals)


def trace_recommendation(user_id: int, session_id: int, basis: dict,
                         cold_start: bool, movie_ids: List[int]):
    if not langfuse:
        return

    trace = langfuse.trace(
        name="recommendation",
        user_id=str(user_id),
        session_id=str(session_id),
        metadata={"cold_start": cold_start},
        input=basis,
    )
    trace.update(
        output=movie_ids,
        metadata={"cold_start": cold_start, "num_movies": len(movie_ids)},
    )
