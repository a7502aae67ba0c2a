"""Course catalog: courses, stats counters, videos and notes."""
