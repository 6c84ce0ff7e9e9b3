"""
Concurrency rules for detecting goroutine and sync misuse.

Rules in this module:
- CONCURRENCY.WAITGROUP_ADD_RACE - wg.Add called inside the goroutine it counts
- CONCURRENCY.WAITGROUP_COPY - sync.WaitGroup passed by value
- CONCURRENCY.EMPTY_INFINITE_LOOP - for {} spinning on a CPU
"""
