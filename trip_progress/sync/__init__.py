"""
Remote trip record synchronization.

Applied transitions become sync intents in a durable outbox; the sync worker
delivers them to the remote trip API with bounded retries. Failures never
roll back local progress.
"""
