"""Step board TUI: todo / doing / done columns for one project."""

from __future__ import annotations

import sys

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, OptionList, Static
from textual.widgets.option_list import Option

from projectflow.workflow.exceptions import CollaboratorFailure, WorkflowError
from projectflow.workflow.interface import CoverGenerator, ProjectStore, TemplateCatalog
from projectflow.workflow.models import Commit, Step, StepStatus
from projectflow.workflow.prompts import Prompt, PromptKind
from projectflow.workflow.session import ProjectSession

COLUMNS = [
    (StepStatus.TODO, "To Do"),
    (StepStatus.DOING, "Doing"),
    (StepStatus.DONE, "Done"),
]

NEXT_STATUS = {StepStatus.TODO: StepStatus.DOING, StepStatus.DOING: StepStatus.DONE}
PREVIOUS_STATUS = {StepStatus.DOING: StepStatus.TODO, StepStatus.DONE: StepStatus.DOING}

REVIEW_COLORS = {"approved": "green", "rejected": "red", "pending": "yellow"}


def step_label(step: Step) -> str:
    badge = ""
    if step.review is not None:
        color = REVIEW_COLORS.get(step.review.value, "white")
        badge = f" [{color}]{step.review.value}[/]"
    proof = " [dim]+proof[/]" if step.proof else ""
    return f"[bold]{step.id}[/] {step.title}{badge}{proof}"


def step_detail(step: Step) -> str:
    lines = [f"# {step.title}", "", f"status: {step.status.value}"]
    if step.proof:
        lines.append(f"proof: {step.proof}")
    if step.review is not None:
        lines.append(f"review: {step.review.value}")
    if step.review_note:
        lines.append(f"note: {step.review_note}")
    return "\n".join(lines)


class StepSelected(Message):
    def __init__(self, step: Step) -> None:
        super().__init__()
        self.step = step


class StepCard(Static):
    can_focus = True

    def __init__(self, step: Step, col_index: int, **kwargs) -> None:
        super().__init__(step_label(step), **kwargs)
        self.step = step
        self.col_index = col_index

    def on_focus(self) -> None:
        self.post_message(StepSelected(self.step))


class StepColumn(VerticalScroll):
    def __init__(self, status: StepStatus, title: str, steps: list[Step], col_index: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self.status = status
        self.heading = title
        self.steps = steps
        self.col_index = col_index

    def compose(self) -> ComposeResult:
        yield Static(
            f"[bold underline]{self.heading}[/] [dim]({len(self.steps)})[/]",
            classes="column-header",
        )
        if not self.steps:
            yield Static("[dim]empty[/]", classes="empty-label")
            return
        for step in self.steps:
            yield StepCard(step, col_index=self.col_index, classes="card")


class DetailPanel(VerticalScroll):
    content_text: reactive[str] = reactive("")

    def compose(self) -> ComposeResult:
        yield Static("[dim]Select a step to view details[/]", id="detail-content")

    def watch_content_text(self, value: str) -> None:
        if self.is_mounted:
            self.query_one("#detail-content", Static).update(value)


class TextPromptModal(ModalScreen[str | None]):
    """Single-line input dialog; dismisses with the trimmed text or None."""

    CSS = """
    TextPromptModal { align: center middle; }
    #text-dialog {
        width: 60; height: auto; max-height: 12;
        border: solid $primary; background: $surface; padding: 1 2;
    }
    #text-title { text-align: center; padding-bottom: 1; }
    #text-input { width: 100%; }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, title: str, label: str, placeholder: str = "") -> None:
        super().__init__()
        self.title_text = title
        self.label = label
        self.placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Vertical(id="text-dialog"):
            yield Static(f"[bold]{self.title_text}[/]", id="text-title")
            yield Static(self.label)
            yield Input(placeholder=self.placeholder, id="text-input")

    @on(Input.Submitted, "#text-input")
    def _on_submit(self, event: Input.Submitted) -> None:
        value = event.value.strip()
        if value:
            self.dismiss(value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ConfirmModal(ModalScreen[bool]):
    CSS = """
    ConfirmModal { align: center middle; }
    #confirm-dialog {
        width: 60; height: auto; max-height: 14;
        border: solid $warning; background: $surface; padding: 1 2;
    }
    #confirm-title { text-align: center; padding-bottom: 1; }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, title: str, message: str) -> None:
        super().__init__()
        self.title_text = title
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Static(f"[bold]{self.title_text}[/]", id="confirm-title")
            yield Static(self.message)
            yield OptionList(Option("Yes", id="yes"), Option("No", id="no"), id="confirm-options")

    @on(OptionList.OptionSelected, "#confirm-options")
    def _on_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id == "yes")

    def action_cancel(self) -> None:
        self.dismiss(False)


class CommitPickerScreen(ModalScreen[str | None]):
    CSS = """
    CommitPickerScreen { align: center middle; }
    #commit-dialog {
        width: 70; height: auto; max-height: 24;
        border: solid $primary; background: $surface; padding: 1 2;
    }
    #commit-title { text-align: center; padding-bottom: 1; }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, commits: list[Commit]) -> None:
        super().__init__()
        self.commits = commits

    def compose(self) -> ComposeResult:
        with Vertical(id="commit-dialog"):
            yield Static("[bold]Restore which commit?[/]", id="commit-title")
            options = [
                Option(
                    f"{c.created_at:%Y-%m-%d %H:%M}  {c.message} [dim]({len(c.snapshot)} steps)[/]",
                    id=c.id,
                )
                for c in self.commits
            ]
            yield OptionList(*options, id="commit-options")

    @on(OptionList.OptionSelected, "#commit-options")
    def _on_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id)

    def action_cancel(self) -> None:
        self.dismiss(None)


class StepBoardApp(App):
    TITLE = "Project Board"

    CSS = """
    #main-layout {
        height: 1fr;
        width: 100%;
    }

    #board {
        width: 1fr;
        height: 100%;
    }

    StepColumn {
        width: 1fr;
        height: 100%;
        border-right: solid $surface-lighten-2;
        padding: 0;
    }

    StepColumn.active-col {
        border-right: solid $accent;
        border-left: solid $accent;
    }

    .column-header {
        text-align: center;
        padding: 0;
        background: $surface-lighten-1;
        margin-bottom: 1;
        height: 1;
    }

    .empty-label {
        text-align: center;
        color: $text-muted;
    }

    .card {
        padding: 0 1;
        margin: 0;
    }

    StepCard:focus {
        background: $surface-lighten-1;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
        background: $surface-lighten-1;
    }

    #detail-panel {
        width: 50;
        height: 100%;
        border-left: solid $primary;
        padding: 1 1;
        display: none;
    }

    #detail-panel.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "reload", "Reload"),
        Binding("a", "add_step", "Add"),
        Binding("n", "move_forward", "Next"),
        Binding("b", "move_back", "Back"),
        Binding("x", "delete_step", "Delete"),
        Binding("p", "attach_proof", "Proof"),
        Binding("c", "commit", "Commit"),
        Binding("h", "restore", "History"),
        Binding("g", "start_building", "Start"),
        Binding("s", "submit", "Submit"),
        Binding("d", "toggle_detail", "Detail"),
        Binding("left", "col_left", "< Col", show=True),
        Binding("right", "col_right", "Col >", show=True),
        Binding("up", "card_up", "", show=False),
        Binding("down", "card_down", "", show=False),
        Binding("question_mark", "help_screen", "?=Help"),
    ]

    def __init__(
        self,
        project_id: str,
        store: ProjectStore,
        catalog: TemplateCatalog,
        covers: CoverGenerator | None = None,
    ) -> None:
        super().__init__()
        self.project_id = project_id
        self.store = store
        self.catalog = catalog
        self.covers = covers
        self.session: ProjectSession | None = None
        self.active_col_index: int = 0

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("[dim]loading...[/]", id="status-bar")
        with Horizontal(id="main-layout"):
            yield Horizontal(id="board")
            yield DetailPanel(id="detail-panel")
        yield Footer()

    def on_mount(self) -> None:
        self.run_worker(self.action_reload())

    @on(StepSelected)
    def _on_step_selected(self, event: StepSelected) -> None:
        self.query_one("#detail-panel", DetailPanel).content_text = step_detail(event.step)

    # -- Loading and rendering --

    async def action_reload(self) -> None:
        try:
            self.session = await ProjectSession.open(
                self.store, self.catalog, self.project_id, covers=self.covers
            )
        except (KeyError, CollaboratorFailure) as exc:
            self.notify(f"Unable to open {self.project_id}: {exc}", severity="error")
            return
        self.sub_title = self.session.project.title or self.project_id
        await self._render_board()

    async def _render_board(self) -> None:
        board = self.query_one("#board", Horizontal)
        for child in list(board.children):
            await child.remove()
        if self.session is None:
            return
        for i, (status, title) in enumerate(COLUMNS):
            steps = self.session.board.steps_with_status(status)
            await board.mount(StepColumn(status, title, steps, col_index=i, id=f"col-{status.value}"))
        self._highlight_active_column()
        self._update_status_bar()

    def _update_status_bar(self) -> None:
        project = self.session.project
        progress = self.session.progress()
        self.query_one("#status-bar", Static).update(
            f"[bold]{project.stage.value}[/]  "
            f"{progress['done']}/{progress['total_steps']} done ({progress['progress_pct']}%)  "
            f"commits: {len(project.commits)}"
        )

    async def _after_change(self, message: str | None = None) -> None:
        """Persist, redraw, then surface whatever prompts the session queued."""
        saved = True
        try:
            await self.session.save()
        except CollaboratorFailure:
            # session queued a "Save failed" alert
            saved = False
        if saved and message:
            self.notify(message)
        await self._render_board()
        self._drain_prompts()

    def _drain_prompts(self) -> None:
        prompt = self.session.prompts.pop()
        if prompt is None:
            return
        if prompt.kind is PromptKind.ALERT:
            self.notify(f"[bold]{prompt.title}[/]: {prompt.message}", severity="error")
            self._drain_prompts()
            return
        self.push_screen(ConfirmModal(prompt.title, prompt.message), callback=self._confirm_callback(prompt))

    def _confirm_callback(self, prompt: Prompt):
        def _on_confirm_result(accepted: bool | None) -> None:
            if not accepted:
                self._drain_prompts()
                return
            try:
                self.session.prompts.resolve(prompt, True)
            except (KeyError, WorkflowError) as exc:
                self.notify(str(exc), severity="warning")
            self.run_worker(self._after_change(prompt.title))

        return _on_confirm_result

    def _apply(self, action, message: str | None = None) -> None:
        """Run a synchronous engine call and persist it in a worker on success."""
        if self.session is None:
            self.notify("Project not loaded", severity="warning")
            return
        try:
            action()
        except (KeyError, WorkflowError) as exc:
            self.notify(str(exc.args[0]) if isinstance(exc, KeyError) else str(exc), severity="warning")
            return
        self.run_worker(self._after_change(message))

    # -- Column navigation --

    def _get_column_widgets(self) -> list[StepColumn]:
        return list(self.query(StepColumn))

    def _highlight_active_column(self) -> None:
        for i, col in enumerate(self._get_column_widgets()):
            col.set_class(i == self.active_col_index, "active-col")

    def _cards_in_column(self, col_index: int) -> list[StepCard]:
        cols = self._get_column_widgets()
        if col_index < 0 or col_index >= len(cols):
            return []
        return [w for w in cols[col_index].walk_children() if isinstance(w, StepCard)]

    def _focus_first_in_active_col(self) -> None:
        cards = self._cards_in_column(self.active_col_index)
        if cards:
            cards[0].focus()

    def action_col_left(self) -> None:
        if self.active_col_index > 0:
            self.active_col_index -= 1
            self._highlight_active_column()
            self._focus_first_in_active_col()

    def action_col_right(self) -> None:
        if self.active_col_index < len(COLUMNS) - 1:
            self.active_col_index += 1
            self._highlight_active_column()
            self._focus_first_in_active_col()

    def action_card_up(self) -> None:
        cards = self._cards_in_column(self.active_col_index)
        if not cards:
            return
        try:
            idx = cards.index(self.focused)
            if idx > 0:
                cards[idx - 1].focus()
        except ValueError:
            cards[-1].focus()

    def action_card_down(self) -> None:
        cards = self._cards_in_column(self.active_col_index)
        if not cards:
            return
        try:
            idx = cards.index(self.focused)
            if idx < len(cards) - 1:
                cards[idx + 1].focus()
        except ValueError:
            cards[0].focus()

    def watch_focused(self, focused) -> None:
        if isinstance(focused, StepCard):
            self.active_col_index = focused.col_index
            self._highlight_active_column()

    def _focused_step(self) -> Step | None:
        if isinstance(self.focused, StepCard):
            return self.focused.step
        self.notify("Select a step first", severity="warning")
        return None

    # -- Step actions --

    def action_add_step(self) -> None:
        def _on_title(title: str | None) -> None:
            if title:
                self._apply(lambda: self.session.add_step(title), f"Added {title}")

        self.push_screen(TextPromptModal("Add step", "Step title:"), callback=_on_title)

    def action_move_forward(self) -> None:
        step = self._focused_step()
        if step is None:
            return
        target = NEXT_STATUS.get(step.status)
        if target is None:
            self.notify(f"{step.id} is already done", severity="warning")
            return
        if target is StepStatus.DONE and not step.proof:

            def _on_proof(proof: str | None) -> None:
                if proof:
                    self._apply(
                        lambda: self.session.move_step(step.id, target, proof=proof),
                        f"{step.id} done",
                    )

            self.push_screen(
                TextPromptModal(f"Finish {step.id}", "Proof of work:", "link, photo or note"),
                callback=_on_proof,
            )
            return
        self._apply(lambda: self.session.move_step(step.id, target), f"{step.id} -> {target.value}")

    def action_move_back(self) -> None:
        step = self._focused_step()
        if step is None:
            return
        target = PREVIOUS_STATUS.get(step.status)
        if target is None:
            self.notify(f"{step.id} is already in To Do", severity="warning")
            return
        self._apply(lambda: self.session.move_step(step.id, target), f"{step.id} -> {target.value}")

    def action_delete_step(self) -> None:
        step = self._focused_step()
        if step is not None:
            self._apply(lambda: self.session.delete_step(step.id), f"Deleted {step.id}")

    def action_attach_proof(self) -> None:
        step = self._focused_step()
        if step is None:
            return

        def _on_proof(proof: str | None) -> None:
            if proof:
                self._apply(lambda: self.session.attach_proof(step.id, proof), f"Proof attached to {step.id}")

        self.push_screen(TextPromptModal(f"Proof for {step.id}", "Evidence link or note:"), callback=_on_proof)

    # -- Commits --

    def action_commit(self) -> None:
        def _on_message(message: str | None) -> None:
            if message:
                self._apply(lambda: self.session.commit(message), "Committed")

        self.push_screen(TextPromptModal("Commit", "Commit message:"), callback=_on_message)

    def action_restore(self) -> None:
        if self.session is None:
            return
        commits = self.session.history()
        if not commits:
            self.notify("No commits yet", severity="warning")
            return

        def _on_pick(commit_id: str | None) -> None:
            if commit_id:
                self.session.request_restore(commit_id)
                self._drain_prompts()

        self.push_screen(CommitPickerScreen(commits), callback=_on_pick)

    # -- Lifecycle --

    def action_start_building(self) -> None:
        self._apply(lambda: self.session.start_building(), "Building started")

    def action_submit(self) -> None:
        if self.session is None:
            return
        try:
            submitted = self.session.request_submit()
        except WorkflowError as exc:
            self.notify(str(exc), severity="warning")
            return
        if submitted is not None:
            self.run_worker(self._after_change("Submitted for review"))
        else:
            self._drain_prompts()

    # -- Detail toggle --

    def action_toggle_detail(self) -> None:
        self.query_one("#detail-panel", DetailPanel).toggle_class("visible")

    def action_help_screen(self) -> None:
        self.notify(
            "[bold]Keys:[/] a=add  n=next  b=back  x=delete  p=proof  c=commit  h=restore  "
            "g=start  s=submit  Left/Right=cols  Up/Down=steps  d=detail  r=reload  q=quit",
            timeout=6,
        )


def run_board(
    project_id: str | None = None,
    store: ProjectStore | None = None,
    catalog: TemplateCatalog | None = None,
) -> None:
    """Entry point for projectflow-board CLI."""
    if store is None or catalog is None or project_id is None:
        from projectflow.adapters.files import JsonFileProjectStore, YamlTemplateCatalog
        from projectflow.adapters.memory import InMemoryTemplateCatalog
        from projectflow.config import load_config

        config = load_config()
        if project_id is None:
            if len(sys.argv) < 2:
                print("usage: projectflow-board <project_id>", file=sys.stderr)
                sys.exit(1)
            project_id = sys.argv[1]
        store = store or JsonFileProjectStore(config.state_dir)
        if catalog is None:
            catalog = (
                YamlTemplateCatalog(config.templates_file)
                if config.templates_file
                else InMemoryTemplateCatalog()
            )
    app = StepBoardApp(project_id, store=store, catalog=catalog)
    app.run()
