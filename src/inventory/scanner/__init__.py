"""Scanner drawer state: scan session and custody blockers."""
