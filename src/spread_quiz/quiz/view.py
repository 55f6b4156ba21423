"""Textual front end over :class:`~spread_quiz.quiz.state.QuizState`.

Navigation, selection and persistence go through plain methods so the app
can be driven without a running event loop.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.widget import Widget
from textual.widgets import Button, Static

from ..parser.text import CIRCLE, CROSS
from ..progress.local import LocalProgressStore
from ..progress.remote import ProgressClient
from .grading import QuestionType
from .persistence import load_local, push_remote, save_local
from .session import answer_feedback
from .state import QuizPhase, QuizState, QuizSummary

__all__ = ["QuestionView", "QuizApp", "SummaryView"]


class QuizApp(App):
    CSS = """
#options Button.selected { background: $accent; color: black; }
#status { color: $text-muted; }
#notice.warning { color: $warning; }
#notice.error { color: $error; }
"""
    BINDINGS = [
        Binding("n", "next", "Next"),
        Binding("p", "prev", "Prev"),
        Binding("a", "toggle_answer", "Answer"),
        Binding("w", "toggle_wrong", "Only wrong"),
        Binding("o", f"select('{CIRCLE}')", CIRCLE),
        Binding("x", f"select('{CROSS}')", CROSS),
        Binding("s", "save", "Save"),
        Binding("l", "load", "Load"),
        Binding("y", "sync", "Sync"),
        Binding("f", "finish", "Finish"),
        Binding("r", "restart", "Restart", show=False),
        Binding("q", "quit", "Quit"),
    ] + [
        Binding(str(digit), f"select('{digit}')", str(digit), show=False)
        for digit in range(1, 10)
    ]

    def __init__(
        self,
        state: QuizState,
        *,
        store: Optional[LocalProgressStore] = None,
        client: Optional[ProgressClient] = None,
        user_key: Optional[str] = None,
        show_explanations: bool = True,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__()
        self.quiz_state = state
        self._progress_store = store
        self._progress_client = client
        self._user_key = user_key
        self._show_explanations = show_explanations
        self._quiz_logger = logger
        self.result_summary: Optional[QuizSummary] = None
        if state.entries and state.phase is QuizPhase.START:
            state.begin()

    def compose(self) -> ComposeResult:
        if not self.quiz_state.entries:
            yield Static(
                "No extractable questions. Check the document format.",
                id="empty",
            )
            return
        with Container(id="stage"):
            yield self._stage_widget()
        with Container(id="footer"):
            yield Static(self.status_text(), id="status")
            yield Static("", id="notice")

    # -- state helpers -----------------------------------------------------

    def status_text(self) -> str:
        state = self.quiz_state
        chapter = state.selected_chapter
        wrong = " | only wrong" if state.only_incorrect else ""
        return (
            f"Answered {len(state.history)}/{len(state.entries)} | "
            f"chapter: {chapter}{wrong}"
        )

    def select_option(self, option_id: str) -> bool:
        if self.quiz_state.phase is not QuizPhase.QUIZ:
            return False
        if self.quiz_state.select(option_id) is None:
            self.quiz_state.post_notice(
                f"'{option_id}' is not an option here.", "warning"
            )
            self._redraw()
            return False
        self._redraw()
        return True

    def next_question(self) -> int:
        if self.quiz_state.phase is QuizPhase.QUIZ:
            self.quiz_state.go_next()
        self._redraw()
        return self.quiz_state.index

    def prev_question(self) -> int:
        if self.quiz_state.phase is QuizPhase.QUIZ:
            self.quiz_state.go_previous()
        self._redraw()
        return self.quiz_state.index

    def _stage_widget(self) -> Widget:
        summary = self.result_summary
        if self.quiz_state.phase is QuizPhase.RESULT and summary is not None:
            return SummaryView(summary)
        return QuestionView(
            self.quiz_state, show_explanations=self._show_explanations
        )

    def _redraw(self) -> None:
        if not self.is_running or not self.quiz_state.entries:
            return
        stage = self.query_one("#stage", Container)
        stage.remove_children()
        stage.mount(self._stage_widget())
        self.query_one("#status", Static).update(self.status_text())
        notice = self.query_one("#notice", Static)
        current = self.quiz_state.notice
        notice.set_classes(current.level if current else "")
        notice.update(current.message if current else "")
        self.quiz_state.dismiss_notice()

    # -- actions -----------------------------------------------------------

    def action_select(self, option_id: str) -> None:
        self.select_option(option_id)

    def action_next(self) -> None:
        self.next_question()

    def action_prev(self) -> None:
        self.prev_question()

    def action_toggle_answer(self) -> None:
        self.quiz_state.toggle_answer()
        self._redraw()

    def action_toggle_wrong(self) -> None:
        self.quiz_state.set_only_incorrect(not self.quiz_state.only_incorrect)
        self._redraw()

    def action_save(self) -> None:
        state = self.quiz_state
        store = self._progress_store
        if store is None:
            state.post_notice("Local saving is not configured.", "warning")
        else:
            self._in_background(
                "save",
                lambda: save_local(
                    state, store, self._user_key, logger=self._quiz_logger
                ),
            )
        self._redraw()

    def action_load(self) -> None:
        # Loading rewrites the quiz state, so it stays on the event loop.
        state = self.quiz_state
        if self._progress_store is None:
            state.post_notice("Local saving is not configured.", "warning")
        else:
            load_local(
                state,
                self._progress_store,
                self._user_key,
                logger=self._quiz_logger,
            )
        self._redraw()

    def action_sync(self) -> None:
        state = self.quiz_state
        client = self._progress_client
        if client is None:
            state.post_notice("No remote server configured.", "warning")
        else:
            state.post_notice("Syncing progress...")
            self._in_background(
                "sync",
                lambda: push_remote(
                    state, client, self._user_key, logger=self._quiz_logger
                ),
            )
        self._redraw()

    def _in_background(self, name: str, job: Callable[[], object]) -> None:
        """Run ``job`` in a worker thread and redraw once it has finished.

        Before the app is running there is no event loop to protect, so the
        job runs inline.
        """
        if not self.is_running:
            job()
            return

        def run() -> None:
            job()
            self.call_from_thread(self._redraw)

        self.run_worker(
            run,
            name=name,
            group="persistence",
            thread=True,
            exit_on_error=False,
        )

    def action_finish(self) -> None:
        if self.quiz_state.phase is not QuizPhase.QUIZ:
            return
        self.result_summary = self.quiz_state.finish()
        self._redraw()

    def action_restart(self) -> None:
        if self.quiz_state.phase is not QuizPhase.RESULT:
            return
        self.quiz_state.restart()
        self.result_summary = None
        self._redraw()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = getattr(event.button, "id", "") or ""
        if button_id.startswith("option-"):
            index = int(button_id.split("-", 1)[1])
            options = self.quiz_state.options
            if 0 <= index < len(options):
                self.select_option(options[index].id)


class QuestionView(Widget):
    """Statement, option buttons and the revealed answer of one question."""

    def __init__(
        self, state: QuizState, *, show_explanations: bool = True
    ) -> None:
        super().__init__()
        self.quiz_state = state
        self.show_explanations = show_explanations

    def compose(self) -> ComposeResult:
        entry = self.quiz_state.current
        if entry is None:
            yield Static("No questions match the current filters.", id="stem")
            return
        total = len(self.quiz_state.filtered_entries)
        yield Static(
            f"{entry.id}  {self.quiz_state.index + 1}/{total}  "
            f"{self.quiz_state.progress_percent}%  [{entry.chapter}]",
            id="progress",
            markup=False,
        )
        yield Static(entry.statement, id="stem", markup=False)
        if entry.question_body and entry.question_body != entry.statement:
            yield Static(entry.question_body, id="body", markup=False)
        with Vertical(id="options"):
            for index, option in enumerate(self.quiz_state.options):
                button = Button(
                    f"{option.id}) {option.label}", id=f"option-{index}"
                )
                if option.id in self.quiz_state.choice:
                    button.add_class("selected")
                yield button
        if self.quiz_state.question_type is QuestionType.MULTI:
            yield Static("Select every correct option.", id="hint")
        yield Static(self.feedback_text(), id="feedback", markup=False)

    def feedback_text(self) -> str:
        if not self.quiz_state.show_answer:
            return ""
        lines, _ = answer_feedback(
            self.quiz_state, show_explanations=self.show_explanations
        )
        return "\n".join(lines)


class SummaryView(Widget):
    def __init__(self, summary: QuizSummary) -> None:
        super().__init__()
        self.result_summary = summary

    def compose(self) -> ComposeResult:
        text = "\n".join(self.summary_lines())
        yield Static(text, id="summary", markup=False)

    def summary_lines(self) -> List[str]:
        summary = self.result_summary
        lines = [
            "Quiz Summary",
            f"Answered {summary.answered_questions}/"
            f"{summary.total_questions}, correct {summary.correct_answers} "
            f"({summary.accuracy * 100:.1f}%)",
        ]
        for name, metrics in summary.per_chapter.items():
            lines.append(
                f"  {name}: {metrics.correct}/{metrics.asked} "
                f"({metrics.accuracy * 100:.1f}%)"
            )
        lines.append("Press r to restart or q to quit.")
        return lines
