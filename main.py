"""
Entrypoint for manual play: the 1969 teletype lunar landing.

For evolving a policy instead, run headless_train.py.
"""
from lunar_lander.console import play

if __name__ == "__main__":
    play()
