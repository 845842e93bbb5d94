import threading

def spawn_job(fn, *args, name: str = "topicdriver-job", **kwargs) -> threading.Thread:
    """Run long-lived background work on a daemon thread. Returns the started Thread."""
    th = threading.Thread(target=fn, args=args, kwargs=kwargs, name=name, daemon=True)
    th.start()
    return th
