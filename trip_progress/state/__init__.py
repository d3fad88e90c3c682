"""
Trip progress state machine.

Per stop: upcoming -> current -> completed | skipped. Per day: in progress ->
day completed. Per trip: day completed on the last day -> trip completed.
"""
