from megamaluca.core.state import GameContext, State, StateMachine
from megamaluca.game.draw import ChaosLevel


def test_starts_idle():
    sm = StateMachine()
    assert sm.state == State.IDLE
    assert not sm.is_busy


def test_valid_path_to_won():
    sm = StateMachine()
    for state in (State.COLLECTING, State.DRAWING, State.DRAWING, State.SETTLING, State.WON):
        assert sm.transition(state)
    assert sm.state == State.WON


def test_invalid_transition_refused():
    sm = StateMachine()
    assert not sm.transition(State.WON)
    assert sm.state == State.IDLE


def test_busy_while_drawing_and_settling():
    sm = StateMachine()
    sm.transition(State.COLLECTING)
    sm.transition(State.DRAWING)
    assert sm.is_busy
    sm.transition(State.SETTLING)
    assert sm.is_busy
    sm.transition(State.LOST)
    assert not sm.is_busy


def test_transition_updates_context():
    sm = StateMachine()
    sm.transition(State.COLLECTING, status_message="hello", bogus=1)
    assert sm.context.status_message == "hello"
    assert not hasattr(sm.context, "bogus")


def test_every_state_can_reset():
    for state in State:
        sm = StateMachine(initial_state=state)
        assert sm.can_transition(State.RESET)


def test_reset_keeps_chaos_level_and_generation():
    sm = StateMachine()
    sm.context.chaos_level = ChaosLevel.APOCALYPTIC
    sm.context.generation = 4
    sm.context.ticket.toggle(10)
    sm.transition(State.COLLECTING)

    sm.reset()

    assert sm.state == State.IDLE
    assert sm.context.chaos_level == ChaosLevel.APOCALYPTIC
    assert sm.context.generation == 4
    assert len(sm.context.ticket) == 0


def test_listeners_notified_and_errors_contained():
    sm = StateMachine()
    seen = []

    def broken(old, new, ctx):
        raise RuntimeError("listener bug")

    def record(old, new, ctx):
        seen.append((old, new))

    sm.add_listener(broken)
    sm.add_listener(record)
    sm.transition(State.COLLECTING)
    sm.remove_listener(record)
    sm.transition(State.IDLE)

    assert seen == [(State.IDLE, State.COLLECTING)]


def test_clear_draw():
    ctx = GameContext(commentary="x", image=b"png", reveal_index=3, is_editing=True)
    ctx.clear_draw()
    assert ctx.commentary == ""
    assert ctx.image is None
    assert ctx.reveal_index == 0
    assert not ctx.is_editing
