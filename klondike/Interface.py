class Interface:
    """
    Observer of an exploration run. Hooks are invoked by the explorer in discovery order.
    """

    def __init__(self):
        self.explorer = None

    def onStart(self, state):
        pass

    def onDiscover(self, transition, depth: int):
        """
        Invoked once per newly discovered state.
        :param transition: the move and the new state it produced
        :param depth: number of moves from the initial state
        """
        pass

    def onDuplicate(self, transition):
        """
        Invoked when a move produces a state that was already discovered.
        :param transition:
        :return:
        """
        pass

    def onFinish(self, result):
        pass
