from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.widget import Widget
from textual.widgets import Button, Static

from .engine import (
    InvalidSelection,
    Phase,
    PlaybackSession,
    PlaybackState,
    Question,
)
from .session import (
    NO_QUESTIONS_ADVICE,
    OPTION_KEYS,
    OUTCOME_MESSAGES,
    option_key,
)

# n, r and q are commands, matching the prompt loop.
_COMMAND_KEYS = frozenset("nrq")


def _option_bindings() -> list[Binding]:
    return [
        Binding(
            letter.lower(),
            f"select({index})",
            f"Select {letter}",
            show=index < 4,
        )
        for index, letter in enumerate(OPTION_KEYS)
        if letter.lower() not in _COMMAND_KEYS
    ]


class QuizApp(App):
    CSS_PATH = None
    CSS = """
#options Button.correct { background: $success; color: black; }
#options Button.incorrect { background: $error; color: black; }
#status { color: $text; }
"""
    BINDINGS = [
        *_option_bindings(),
        Binding("n", "advance", "Next"),
        Binding("r", "restart", "Restart"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, session: PlaybackSession):
        super().__init__()
        self._session = session

    @property
    def state(self) -> PlaybackState:
        return self._session.state

    def compose(self) -> ComposeResult:
        state = self.state
        if state.phase is Phase.ERROR:
            yield Static("Error", id="title")
            yield Static(state.error or "", id="message")
            return
        if state.phase is Phase.NO_QUESTIONS:
            yield Static("No Questions Generated", id="title")
            yield Static(NO_QUESTIONS_ADVICE, id="message")
            return
        with Container(id="stage"):
            yield from self._stage_widgets()
        with Container(id="footer"):
            yield Button("Next", id="next")
            yield Button("Restart", id="restart")
            yield Static(self.status_text(), id="status")

    # Pure helpers (testable without running App)
    def select_answer(self, option_index: int) -> bool:
        if self.state.phase is not Phase.READY:
            return False
        try:
            self._session.select_answer(option_index)
        except InvalidSelection:
            return False
        self._update_stage()
        return True

    def advance(self) -> Phase:
        self._session.advance()
        self._update_stage()
        return self.state.phase

    def restart(self) -> Phase:
        self._session.restart()
        self._update_stage()
        return self.state.phase

    def status_text(self) -> str:
        state = self.state
        if state.phase is Phase.COMPLETED:
            return f"Your score: {state.score} out of {state.total}"
        if not state.in_progress:
            return ""
        return (
            f"Question {state.current_index + 1} of {state.total} | "
            f"Score: {state.score}"
        )

    def _stage_widgets(self) -> list[Widget]:
        state = self.state
        if state.phase is Phase.COMPLETED:
            outcome = self._session.outcome()
            message = OUTCOME_MESSAGES[outcome] if outcome else ""
            return [
                Static("Quiz Completed!", id="title"),
                Static(self.status_text(), id="score"),
                Static(message, id="outcome"),
            ]
        question = state.current_question
        if question is None:
            return [Static("Loading...", id="loading")]
        return [
            QuestionView(
                question,
                index=state.current_index + 1,
                total=state.total,
                selected=state.selected_option_index,
            )
        ]

    def _update_stage(self) -> None:
        try:
            stage = self.query_one("#stage", Container)
        except Exception:
            return
        stage.remove_children()
        for widget in self._stage_widgets():
            stage.mount(widget)
        try:
            status = self.query_one("#status", Static)
            status.update(self.status_text())
        except Exception:
            pass

    def action_select(self, option_index: int) -> None:
        self.select_answer(option_index)

    def action_advance(self) -> None:
        self.advance()

    def action_restart(self) -> None:
        self.restart()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid.startswith("option-"):
            self.select_answer(int(bid[len("option-"):]))
        elif bid == "next":
            self.action_advance()
        elif bid == "restart":
            self.action_restart()


class QuestionView(Widget):
    """Renders one question, its options and, once answered, the feedback."""

    def __init__(
        self,
        question: Question,
        index: int,
        total: int,
        *,
        selected: Optional[int] = None,
    ) -> None:
        super().__init__()
        self.question = question
        self.index = index
        self.total = total
        self.selected = selected

    def compose(self) -> ComposeResult:
        yield Static(self.question.prompt, id="prompt")
        with Vertical(id="options"):
            for idx, option in enumerate(self.question.options):
                btn = Button(f"{option_key(idx)}) {option}", id=f"option-{idx}")
                css_class = self.option_class(idx)
                if css_class:
                    try:
                        btn.add_class(css_class)
                    except Exception:
                        pass
                yield btn
        yield Static(f"{self.index}/{self.total}", id="progress")
        yield Static(self.feedback_text(), id="feedback")

    def option_class(self, idx: int) -> Optional[str]:
        if self.selected is None:
            return None
        if idx == self.question.correct_option_index:
            return "correct"
        if idx == self.selected:
            return "incorrect"
        return None

    def feedback_text(self) -> str:
        if self.selected is None:
            return ""
        if self.question.is_correct(self.selected):
            return "Correct!"
        answer = self.question.options[self.question.correct_option_index]
        return f"Incorrect. The correct answer is: {answer}"
