from __future__ import annotations  # Oracle tasks, analytics facade and answer flow
