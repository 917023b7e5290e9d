"""
Focus backend package.

Daily task list with a cap on active priority tasks, a focus/break cycle
timer, and per-day accumulation of focused minutes. The FastAPI app lives in
``focus_api.main``.
"""
