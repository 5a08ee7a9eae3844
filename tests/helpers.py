class SequenceRandom:
    """Replays a fixed list of draws for spawn()."""
    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self):
        value = self.values[self.calls]
        self.calls += 1
        return value
