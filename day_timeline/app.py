# day_timeline/app.py
"""
Kivy front end for the day timeline.

Top bar: Start Day / End Day, the date, and a menu with chart and CSV export.
Middle: the day as a vertical stack of tag-coloured blocks sized by elapsed
time, with clock times between blocks. Bottom: Start/End Task.
Clicking a block opens it for editing. The view refreshes on a Kivy Clock
interval; the interval only affects redraws.
"""
from datetime import datetime

from kivy.app import App
from kivy.clock import Clock
from kivy.animation import Animation
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.gridlayout import GridLayout
from kivy.uix.textinput import TextInput
from kivy.uix.behaviors import ButtonBehavior
from kivy.uix.label import Label
from kivy.uix.scrollview import ScrollView
from kivy.uix.popup import Popup
from kivy.uix.image import Image
from kivy.uix.colorpicker import ColorPicker
from kivy.core.window import Window
from kivy.graphics import Color, RoundedRectangle, Rectangle
from kivy.utils import get_color_from_hex

from . import config
from .charts import default_chart_path, generate_day_timeline_chart, generate_tag_pie_chart
from .errors import InvalidStateError, StorageError, ValidationError
from .export import export_day_csv
from .projector import project_height, timesteps
from .storage import JsonFileStore
from .tags import TagRegistry
from .timeline import DayState, DayTimelineStateMachine
from .utils import date_key, format_seconds, format_time, log_error, setup_logging

# ---------------- Theme (dark + neon) ----------------
COLOR_BG = (0.03, 0.04, 0.07, 1)
COLOR_CARD = (0.06, 0.08, 0.12, 1)
COLOR_PANEL = (0.04, 0.06, 0.10, 0.95)
COLOR_NEON = (0.0, 0.79, 0.95, 0.95)
COLOR_TEXT = (0.92, 0.96, 1.0, 1)
COLOR_SUBTEXT = (0.72, 0.82, 0.9, 1)

COLOR_START = (0.0, 0.45, 0.0, 1)
COLOR_START_H = (0.0, 0.65, 0.15, 1)
COLOR_STOP = (0.0, 0.15, 0.6, 1)
COLOR_STOP_H = (0.0, 0.35, 0.9, 1)

TIMESTEP_HEIGHT = 18


def show_message(title, text):
    Popup(title=title, content=Label(text=text), size_hint=(0.6, 0.3)).open()


# ---------------- HoverManager (single global binding) ----------------
class HoverManager:
    _buttons = set()
    _bound = False

    @classmethod
    def register(cls, btn):
        cls._buttons.add(btn)
        if not cls._bound:
            Window.bind(mouse_pos=cls._on_mouse_pos)
            cls._bound = True

    @classmethod
    def _on_mouse_pos(cls, window, pos):
        for btn in list(cls._buttons):
            if not btn.get_root_window():
                continue
            inside = btn.collide_point(*btn.to_widget(*pos))
            if inside and not btn._hover:
                btn._hover = True
                cls._fade(btn, btn._hover_color)
            elif not inside and btn._hover:
                btn._hover = False
                cls._fade(btn, btn._bg_color)

    @staticmethod
    def _fade(btn, rgba):
        Animation.cancel_all(btn._col)
        Animation(r=rgba[0], g=rgba[1], b=rgba[2], a=rgba[3], d=0.12, t='out_quad').start(btn._col)


# ---------------- RoundedButton ----------------
class RoundedButton(ButtonBehavior, Label):
    def __init__(self, text="", bg_color=(0.2, 0.2, 0.2, 1), hover_color=None, radius=12, **kwargs):
        super().__init__(**kwargs)
        self.text = text
        self.halign = "center"
        self.valign = "middle"
        self.color = (1, 1, 1, 1)
        if hover_color is None:
            hover_color = tuple(min(1, c + 0.12) for c in bg_color[:3]) + (bg_color[3],)
        self._hover_color = hover_color
        self._bg_color = bg_color
        self._hover = False
        self.radius = radius

        with self.canvas.before:
            self._col = Color(*self._bg_color)
            self._rect = RoundedRectangle(pos=self.pos, size=self.size, radius=[self.radius])

        self.bind(pos=self._update_rect, size=self._update_rect)
        HoverManager.register(self)

    def _update_rect(self, *a):
        self._rect.pos = self.pos
        self._rect.size = self.size

    def set_colors(self, bg_color, hover_color):
        self._bg_color = bg_color
        self._hover_color = hover_color
        Animation.cancel_all(self._col)
        self._col.rgba = hover_color if self._hover else bg_color


# ---------------- Timeline widgets ----------------
class TaskBlock(ButtonBehavior, Label):
    """One task drawn as a coloured block; height follows its share of the day."""

    def __init__(self, task, color_hex, **kwargs):
        super().__init__(**kwargs)
        self.task = task
        self.text = task.title or "(untitled)"
        self.bold = True
        self.color = (1, 1, 1, 1)
        with self.canvas.before:
            self._col = Color(*get_color_from_hex(color_hex))
            self._rect = Rectangle(pos=self.pos, size=self.size)
        self.bind(pos=self._update_rect, size=self._update_rect)

    def _update_rect(self, *a):
        self._rect.pos = self.pos
        self._rect.size = self.size


class TimestepLabel(Label):
    def __init__(self, moment, **kwargs):
        super().__init__(**kwargs)
        self.size_hint_y = None
        self.height = TIMESTEP_HEIGHT
        self.font_size = 11
        self.color = COLOR_SUBTEXT
        self.text = format_time(moment)


class TimelineView(BoxLayout):
    """Vertical stack of blocks and timesteps for the active day."""

    def __init__(self, on_task_click, **kwargs):
        super().__init__(**kwargs)
        self.orientation = "vertical"
        self.on_task_click = on_task_click
        self._signature = None
        self._blocks = []
        self._steps = []

    def refresh(self, day, registry, now):
        if day is None:
            if self._signature is not None:
                self.clear_widgets()
                self._blocks, self._steps = [], []
                self._signature = None
            return
        signature = tuple((t.id, t.title, t.tag_id, t.end_time) for t in day.tasks)
        if signature != self._signature:
            self._rebuild(day, registry, now)
            self._signature = signature
        for block in self._blocks:
            block.size_hint_y = project_height(block.task, day, now)
        for label, moment in zip(self._steps, timesteps(day, now)):
            label.text = format_time(moment)

    def _rebuild(self, day, registry, now):
        self.clear_widgets()
        self._blocks, self._steps = [], []
        steps = timesteps(day, now)
        if steps:
            self._add_step(steps[0])
        for task, moment in zip(day.tasks, steps[1:]):
            tag = registry.find_tag(task.tag_id)
            block = TaskBlock(task, tag.color if tag else config.DEFAULT_TAG_COLOR)
            block.bind(on_press=lambda inst: self.on_task_click(inst.task))
            self._blocks.append(block)
            self.add_widget(block)
            self._add_step(moment)

    def _add_step(self, moment):
        label = TimestepLabel(moment)
        self._steps.append(label)
        self.add_widget(label)


# ---------------- Dialogs ----------------
class NewTagDialog:
    def __init__(self, registry, on_created):
        self.registry = registry
        self.on_created = on_created

    def open(self):
        content = BoxLayout(orientation="vertical", spacing=8, padding=8)
        name_input = TextInput(hint_text="Tag Name", multiline=False, size_hint_y=None, height=40)
        picker = ColorPicker(size_hint_y=0.75)
        picker.hex_color = config.DEFAULT_TAG_COLOR
        error_label = Label(text="", size_hint_y=None, height=24, color=(1, 0.4, 0.4, 1))
        create_btn = RoundedButton(text="Create Tag", bg_color=COLOR_NEON, hover_color=(0.3, 1, 1, 1),
                                   radius=12, size_hint_y=None, height=42)
        content.add_widget(name_input)
        content.add_widget(picker)
        content.add_widget(error_label)
        content.add_widget(create_btn)
        popup = Popup(title="Create New Tag", content=content, size_hint=(0.8, 0.85))

        def do_create(_):
            try:
                # picker reports #rrggbbaa
                tag = self.registry.create_tag(name_input.text, picker.hex_color[:7])
            except ValidationError as e:
                error_label.text = str(e)
                return
            popup.dismiss()
            self.on_created(tag)

        create_btn.bind(on_press=do_create)
        popup.open()


class TaskDialog:
    """Start a task, or edit ``editing_task`` when one is given."""

    def __init__(self, app, editing_task=None):
        self.app = app
        self.editing_task = editing_task
        self.selected_tag_id = editing_task.tag_id if editing_task else None

    def open(self):
        machine = self.app.machine
        task = self.editing_task
        content = BoxLayout(orientation="vertical", spacing=8, padding=8)
        self.title_input = TextInput(text=task.title if task else "", hint_text="Task Title",
                                     multiline=False, size_hint_y=None, height=40)
        self.desc_input = TextInput(text=task.description if task else "",
                                    hint_text="Task Description (optional)",
                                    multiline=False, size_hint_y=None, height=40)
        self.tag_button_label = Label(size_hint_y=None, height=28, color=COLOR_TEXT)
        search_input = TextInput(hint_text="Search tags...", multiline=False, size_hint_y=None, height=36)
        self.tag_list = GridLayout(cols=1, spacing=4, size_hint_y=None)
        self.tag_list.bind(minimum_height=self.tag_list.setter('height'))
        tag_scroll = ScrollView()
        tag_scroll.add_widget(self.tag_list)
        new_tag_btn = RoundedButton(text="Create New Tag", bg_color=COLOR_CARD, radius=12,
                                    size_hint_y=None, height=38)
        self.error_label = Label(text="", size_hint_y=None, height=24, color=(1, 0.4, 0.4, 1))
        done_btn = RoundedButton(text="Done", bg_color=COLOR_NEON, hover_color=(0.3, 1, 1, 1),
                                 radius=12, size_hint_y=None, height=42)

        for widget in (self.title_input, self.desc_input, self.tag_button_label, search_input,
                       tag_scroll, new_tag_btn, self.error_label, done_btn):
            content.add_widget(widget)

        self.popup = Popup(title=machine.dialog_title(task.id if task else None),
                           content=content, size_hint=(0.8, 0.85))

        search_input.bind(text=lambda inst, value: self._fill_tags(value))
        new_tag_btn.bind(on_press=lambda *_: NewTagDialog(self.app.registry, self._on_tag_created).open())
        done_btn.bind(on_press=self._done)
        self._fill_tags("")
        self._show_selected()
        self.popup.open()

    def _fill_tags(self, term):
        self.tag_list.clear_widgets()
        for tag in self.app.registry.search_tags(term):
            rgba = tuple(get_color_from_hex(tag.color))
            btn = RoundedButton(text=tag.name, bg_color=rgba, radius=10, size_hint_y=None, height=34)
            btn.bind(on_press=lambda inst, tag_id=tag.id: self._select(tag_id))
            self.tag_list.add_widget(btn)

    def _select(self, tag_id):
        self.selected_tag_id = tag_id
        self._show_selected()

    def _show_selected(self):
        tag = self.app.registry.find_tag(self.selected_tag_id)
        self.tag_button_label.text = f"Tag: {tag.name}" if tag else "Select tag"

    def _on_tag_created(self, tag):
        self._fill_tags("")
        self._select(tag.id)

    def _done(self, _):
        try:
            self.app.machine.submit_task(
                self.title_input.text.strip(),
                self.desc_input.text.strip(),
                self.selected_tag_id,
                editing_task_id=self.editing_task.id if self.editing_task else None,
            )
        except ValidationError as e:
            # stay open so the user can fix the input
            self.error_label.text = str(e)
            return
        self.popup.dismiss()
        self.app.refresh()


# ---------------- App ----------------
class TimelineApp(App):
    title = "Day Timeline"

    def build(self):
        setup_logging()
        Window.clearcolor = COLOR_BG
        store = JsonFileStore()
        self.registry = TagRegistry(store, on_storage_error=self.report_storage_error)
        self.machine = DayTimelineStateMachine(store, on_storage_error=self.report_storage_error)
        self.side_open = False
        self._shown_state = None

        root = BoxLayout(orientation="horizontal", padding=10, spacing=10)
        main_area = BoxLayout(orientation="vertical", spacing=10)

        top_controls = BoxLayout(size_hint_y=None, height=46, spacing=8)
        self.day_btn = RoundedButton(text="Start Day", bg_color=COLOR_START, hover_color=COLOR_START_H,
                                     radius=14, size_hint_x=0.2)
        self.day_btn.bind(on_press=self.toggle_day)
        self.date_label = Label(text="", size_hint_x=0.6, color=COLOR_TEXT)
        self.menu_btn = RoundedButton(text="Menu", bg_color=COLOR_PANEL, hover_color=(0.06, 0.12, 0.18, 1),
                                      radius=14, size_hint_x=0.2)
        self.menu_btn.bind(on_press=self.toggle_side_panel)
        top_controls.add_widget(self.day_btn)
        top_controls.add_widget(self.date_label)
        top_controls.add_widget(self.menu_btn)

        self.timeline_view = TimelineView(on_task_click=self.open_edit_dialog)

        bottom_bar = BoxLayout(size_hint_y=None, height=50, spacing=8)
        self.status_label = Label(text="", size_hint_x=0.6, color=COLOR_NEON)
        self.task_btn = RoundedButton(text="Start/End Task", bg_color=COLOR_STOP, hover_color=COLOR_STOP_H,
                                      radius=14, size_hint_x=0.4)
        self.task_btn.bind(on_press=lambda *_: self.open_task_dialog())
        bottom_bar.add_widget(self.status_label)
        bottom_bar.add_widget(self.task_btn)

        main_area.add_widget(top_controls)
        main_area.add_widget(self.timeline_view)
        main_area.add_widget(bottom_bar)

        # side panel (menu)
        self.side_panel = BoxLayout(orientation="vertical", size_hint_x=None, width=0, opacity=0, spacing=8)
        self.side_panel.disabled = True
        self.side_panel.add_widget(Label(text="Menu", size_hint_y=None, height=30, color=COLOR_NEON))
        for text, action in (("Timeline Chart", self.open_timeline_chart),
                             ("Tag Breakdown", self.open_tag_chart),
                             ("Export CSV (Today)", self.export_csv)):
            btn = RoundedButton(text=text, bg_color=COLOR_PANEL, hover_color=(0.06, 0.12, 0.18, 1),
                                radius=14, size_hint_y=None, height=44)
            btn.bind(on_press=lambda inst, fn=action: fn())
            self.side_panel.add_widget(btn)
        self.side_panel.add_widget(Label(text="Tip:\n- Click a block to edit it", color=COLOR_SUBTEXT))

        root.add_widget(main_area)
        root.add_widget(self.side_panel)

        self.machine.resume()
        self.machine.attach()
        self.registry.attach()
        self.refresh()
        return root

    def on_start(self):
        Clock.schedule_interval(lambda dt: self.refresh(), config.TICK_SECONDS)

    # ---------------- state → widgets ----------------
    def refresh(self):
        now = datetime.now()
        day = self.machine.day
        self.timeline_view.refresh(day, self.registry, now)
        state_changed = self.machine.state is not self._shown_state
        self._shown_state = self.machine.state
        if self.machine.state is DayState.DAY_OPEN:
            if state_changed:
                self.day_btn.text = "End Day"
                self.day_btn.set_colors(COLOR_STOP, COLOR_STOP_H)
            self.date_label.text = day.date
            self.task_btn.disabled = False
            current = self.machine.current_task()
            if current is not None:
                self.status_label.text = f"{current.title or '(untitled)'}: {format_seconds(int(current.duration(now)))}"
            else:
                self.status_label.text = "No task yet"
        else:
            if state_changed:
                self.day_btn.text = "Start Day"
                self.day_btn.set_colors(COLOR_START, COLOR_START_H)
            self.date_label.text = now.date().isoformat()
            self.task_btn.disabled = True
            self.status_label.text = ""

    # ---------------- actions ----------------
    def toggle_day(self, instance):
        try:
            if self.machine.state is DayState.DAY_OPEN:
                self.machine.end_day()
            else:
                self.machine.start_day()
                self.machine.attach()
                self.open_task_dialog()
        except InvalidStateError as e:
            log_error(e)
            show_message("Error", str(e))
        self.refresh()

    def open_task_dialog(self):
        if self.machine.state is not DayState.DAY_OPEN:
            return
        TaskDialog(self).open()

    def open_edit_dialog(self, task):
        TaskDialog(self, editing_task=task).open()

    def report_storage_error(self, e: StorageError):
        show_message("Storage Error", "Saving failed. See error.log")

    def toggle_side_panel(self, instance):
        if self.side_open:
            anim = Animation(width=0, opacity=0, d=0.20, t='out_quad')

            def _on_complete(anim, widget):
                widget.disabled = True
            anim.bind(on_complete=_on_complete)
            anim.start(self.side_panel)
            self.side_open = False
            instance.text = "Menu"
        else:
            self.side_panel.disabled = False
            Animation(width=260, opacity=1, d=0.20, t='out_quad').start(self.side_panel)
            self.side_open = True
            instance.text = "Close"

    # ---------------- charts & export ----------------
    def _shown_day(self):
        """The open day, or today's stored record once it has been closed."""
        if self.machine.day is not None:
            return self.machine.day
        try:
            return self.machine.store.load_day(date_key(datetime.now()))
        except StorageError as e:
            log_error(e)
            return None

    def _open_chart(self, kind, generate):
        day = self._shown_day()
        if day is None:
            show_message("Charts", "No day recorded today.")
            return
        try:
            path = generate(day, self.registry.list_tags(), datetime.now(), default_chart_path(day, kind))
        except (OSError, ValueError) as e:
            log_error(e)
            show_message("Charts Error", "Failed to build chart. See error.log")
            return
        img = Image(source=path, fit_mode="contain")
        img.reload()
        Popup(title=day.date, content=img, size_hint=(0.8, 0.9)).open()

    def open_timeline_chart(self):
        self._open_chart("timeline", generate_day_timeline_chart)

    def open_tag_chart(self):
        self._open_chart("tags", generate_tag_pie_chart)

    def export_csv(self):
        day = self._shown_day()
        if day is None:
            show_message("Export", "No day recorded today.")
            return
        try:
            out_file = export_day_csv(day, self.registry.list_tags(), datetime.now())
        except OSError as e:
            log_error(e)
            show_message("Error", "Export failed. See error.log")
            return
        show_message("Export complete", f"Exported to {out_file}")


def main():
    TimelineApp().run()


if __name__ == "__main__":
    main()
