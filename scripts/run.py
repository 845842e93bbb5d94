# scripts/run.py
import logging
import time

from topicdriver.app.dispatcher import Connector
from topicdriver.config.loader import load_options

def on_test(key, value):
    logging.getLogger("demo").info("test key=%s value=%r", key, value)

def main():
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s | %(message)s")

    conn = Connector(load_options({"test": on_test}))
    conn.start()
    conn.publish("test", "KEY", "VALUE")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        conn.stop()

if __name__ == "__main__":
    main()
