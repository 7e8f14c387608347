import math
import tkinter as tk
from tkinter import ttk, filedialog, messagebox, simpledialog

import matplotlib.pyplot as plt
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg

from automaton import AUTOMATON_TYPES, Position, is_epsilon
from conversion import EmptyAutomatonError
from editor import AutomatonEditor
from parsing import MalformedDocumentError
from playback import describe_step
from visualization import AutomatonVisualizer


STATE_RADIUS = 25
TOOLS = (
    ("select", "Select"),
    ("state", "Add State"),
    ("transition", "Add Transition"),
    ("delete", "Delete"),
)


class AutomatonGUI:
    def __init__(self, root):
        self.root = root
        self.root.title("Automata Builder")
        self.root.geometry("1200x800")
        self.root.protocol("WM_DELETE_WINDOW", self.on_closing)
        self.editor = AutomatonEditor()
        self.tool = tk.StringVar(value="select")
        self.type_var = tk.StringVar(value="NFA")
        self.pending_source = None
        self.dragging = None
        self.setup_ui()
        self.redraw()

    def on_closing(self):
        plt.close('all')
        self.root.quit()
        self.root.destroy()

    def setup_ui(self):
        main_frame = ttk.Frame(self.root)
        main_frame.pack(fill='both', expand=True, padx=10, pady=10)

        sidebar = ttk.Frame(main_frame, width=240)
        sidebar.pack(side='left', fill='y', padx=(0, 10))

        tools_frame = ttk.LabelFrame(sidebar, text="Tools")
        tools_frame.pack(fill='x', pady=(0, 10))
        for value, text in TOOLS:
            ttk.Radiobutton(
                tools_frame, text=text, value=value, variable=self.tool,
                command=self.on_tool_change,
            ).pack(anchor='w', padx=5, pady=2)

        actions = ttk.LabelFrame(sidebar, text="Actions")
        actions.pack(fill='x', pady=(0, 10))
        type_box = ttk.Combobox(actions, textvariable=self.type_var, values=AUTOMATON_TYPES, state='readonly')
        type_box.pack(fill='x', padx=5, pady=2)
        type_box.bind("<<ComboboxSelected>>", self.on_type_change)
        ttk.Button(actions, text="Convert NFA → DFA", command=self.convert).pack(fill='x', padx=5, pady=2)
        ttk.Button(actions, text="Validate", command=self.validate).pack(fill='x', padx=5, pady=2)
        ttk.Button(actions, text="Clear", command=self.clear).pack(fill='x', padx=5, pady=2)
        ttk.Button(actions, text="Export (JSON)", command=self.export_file).pack(fill='x', padx=5, pady=2)
        ttk.Button(actions, text="Import (JSON)", command=self.import_file).pack(fill='x', padx=5, pady=2)

        info_frame = ttk.LabelFrame(sidebar, text="Automaton Info")
        info_frame.pack(fill='both', expand=True)
        self.info_text = tk.Text(info_frame, wrap='word', width=30, font=('Courier', 10))
        self.info_text.pack(fill='both', expand=True)

        self.canvas = tk.Canvas(main_frame, background="white")
        self.canvas.pack(side='left', fill='both', expand=True)
        self.canvas.bind("<Button-1>", self.on_click)
        self.canvas.bind("<B1-Motion>", self.on_drag)
        self.canvas.bind("<ButtonRelease-1>", self.on_release)
        self.canvas.bind("<Double-Button-1>", self.on_double_click)
        self.canvas.bind("<Button-3>", self.on_right_click)

    # ---------------- Canvas events ----------------
    def on_type_change(self, event=None):
        self.editor.set_type(self.type_var.get())
        self.redraw()

    def on_tool_change(self):
        self.pending_source = None
        self.redraw()

    def item_under_pointer(self):
        for tag in self.canvas.gettags("current"):
            kind, _, ident = tag.partition(":")
            if kind in ("state", "transition"):
                return kind, ident
        return None, None

    def on_click(self, event):
        kind, ident = self.item_under_pointer()
        tool = self.tool.get()
        try:
            if tool == "state" and kind is None:
                self.editor.add_state(Position(event.x, event.y))
            elif tool == "select":
                if kind == "state":
                    self.editor.select_state(ident)
                    self.dragging = ident
                elif kind == "transition":
                    self.editor.select_transition(ident)
            elif tool == "transition" and kind == "state":
                self.on_transition_click(ident)
            elif tool == "delete" and kind is not None:
                if kind == "state":
                    self.editor.delete_state(ident)
                else:
                    self.editor.delete_transition(ident)
        except KeyError as e:
            messagebox.showerror("Error", str(e))
        self.redraw()

    def on_transition_click(self, state_id):
        if self.pending_source is None:
            self.pending_source = state_id
            self.editor.select_state(state_id)
            return
        symbol = simpledialog.askstring("Transition", "Enter transition symbol:", parent=self.root)
        if symbol is not None:
            self.editor.add_transition(self.pending_source, state_id, symbol)
        self.pending_source = None

    def on_drag(self, event):
        if self.dragging is not None and self.tool.get() == "select":
            self.editor.move_state(self.dragging, Position(event.x, event.y))
            self.redraw()

    def on_release(self, event):
        self.dragging = None

    def on_double_click(self, event):
        kind, ident = self.item_under_pointer()
        if kind == "state":
            self.editor.toggle_accepting(ident)
            self.redraw()

    def on_right_click(self, event):
        kind, ident = self.item_under_pointer()
        if kind == "state":
            self.editor.toggle_initial(ident)
            self.redraw()

    # ---------------- Drawing ----------------
    def redraw(self):
        self.canvas.delete("all")
        automaton = self.editor.automaton
        by_id = {s.id: s for s in automaton.states}
        pairs = {(t.from_state, t.to_state) for t in automaton.transitions}

        for t in automaton.transitions:
            if t.from_state in by_id and t.to_state in by_id:
                self.draw_transition(t, by_id[t.from_state], by_id[t.to_state],
                                     (t.to_state, t.from_state) in pairs)
        for state in automaton.states:
            self.draw_state(state)

        self.update_info()

    def draw_state(self, state):
        x, y, r = state.position.x, state.position.y, STATE_RADIUS
        tag = f"state:{state.id}"
        outline = "blue" if state.is_selected or state.id == self.pending_source else "black"
        self.canvas.create_oval(x - r, y - r, x + r, y + r, fill="lightyellow",
                                outline=outline, width=2, tags=(tag,))
        if state.is_accepting:
            self.canvas.create_oval(x - r + 5, y - r + 5, x + r - 5, y + r - 5,
                                    outline=outline, tags=(tag,))
        if state.is_initial:
            self.canvas.create_line(x - r - 30, y, x - r, y, arrow=tk.LAST, width=2, tags=(tag,))
        self.canvas.create_text(x, y, text=state.label, tags=(tag,))

    def draw_transition(self, t, src, dst, bidirectional):
        tag = f"transition:{t.id}"
        color = "blue" if t.is_selected else "gray30"
        label = "ε" if is_epsilon(t.symbol) else t.symbol
        x1, y1 = src.position.x, src.position.y
        x2, y2 = dst.position.x, dst.position.y
        r = STATE_RADIUS

        if src.id == dst.id:
            self.canvas.create_line(x1 - 10, y1 - r, x1 - 20, y1 - r - 35, x1 + 20, y1 - r - 35,
                                    x1 + 10, y1 - r, smooth=True, arrow=tk.LAST,
                                    fill=color, width=2, tags=(tag,))
            self.canvas.create_text(x1, y1 - r - 45, text=label, fill=color, tags=(tag,))
            return

        length = math.hypot(x2 - x1, y2 - y1) or 1.0
        ux, uy = (x2 - x1) / length, (y2 - y1) / length
        offset = 30 if bidirectional else 0
        mx, my = (x1 + x2) / 2 - uy * offset, (y1 + y2) / 2 + ux * offset
        self.canvas.create_line(x1 + ux * r, y1 + uy * r, mx, my, x2 - ux * r, y2 - uy * r,
                                smooth=True, arrow=tk.LAST, fill=color, width=2, tags=(tag,))
        self.canvas.create_text(mx - uy * 10, my + ux * 10, text=label, fill=color, tags=(tag,))

    def update_info(self):
        automaton = self.editor.automaton
        self.type_var.set(automaton.type)
        stats = automaton.get_stats()
        symbols = automaton.symbols()
        lines = [
            f"Type: {stats['type']}",
            f"States: {stats['states']}",
            f"Transitions: {stats['total_transitions']}",
            f"Alphabet: {{{', '.join(symbols)}}}" if symbols else "Alphabet: ∅",
            "",
            "Final states:",
        ]
        lines.extend(f"  {s.label}" for s in automaton.states if s.is_accepting)
        lines.extend([
            "",
            "Double-click state: toggle accepting",
            "Right-click state: toggle initial",
        ])
        self.info_text.delete(1.0, tk.END)
        self.info_text.insert(tk.END, "\n".join(lines))

    # ---------------- Actions ----------------
    def convert(self):
        try:
            player = self.editor.start_conversion()
        except EmptyAutomatonError as e:
            messagebox.showerror("Error", str(e))
            return
        ConversionWindow(self.root, player)

    def validate(self):
        automaton = self.editor.automaton
        if not automaton.states:
            messagebox.showerror("Error", "No automaton to validate!")
            return
        issues = automaton.validate()
        if not issues:
            messagebox.showinfo("Validate", "Automaton is valid!")
        else:
            messagebox.showwarning("Validate", f"Issues found: {', '.join(issues)}")

    def clear(self):
        self.editor.clear()
        self.pending_source = None
        self.redraw()

    def export_file(self):
        file_path = filedialog.asksaveasfilename(filetypes=[("JSON files", "*.json")],
                                                 defaultextension=".json",
                                                 initialfile="automaton.json")
        if not file_path:
            return
        try:
            self.editor.export_json(file_path)
            messagebox.showinfo("Export", f"Automaton exported to {file_path}")
        except OSError as e:
            messagebox.showerror("Error", f"Error saving file: {e}")

    def import_file(self):
        file_path = filedialog.askopenfilename(filetypes=[("JSON files", "*.json")])
        if file_path:
            self.load_path(file_path)

    def load_path(self, path):
        try:
            self.editor.import_json(path)
        except MalformedDocumentError as e:
            messagebox.showerror("Error", f"Invalid file format: {e}")
            return
        self.pending_source = None
        self.redraw()


class ConversionWindow:
    def __init__(self, master, player):
        self.player = player
        self.window = tk.Toplevel(master)
        self.window.title("NFA to DFA Conversion")
        self.window.geometry("1100x700")
        self.window.protocol("WM_DELETE_WINDOW", self.on_closing)
        self.setup_ui()
        self.show()

    def on_closing(self):
        plt.close(self.fig)
        self.window.destroy()

    def setup_ui(self):
        steps_frame = ttk.LabelFrame(self.window, text="Conversion Steps")
        steps_frame.pack(side='left', fill='y', padx=10, pady=10)
        self.steps_list = tk.Listbox(steps_frame, width=45, exportselection=False)
        for step in self.player.steps:
            self.steps_list.insert(tk.END, describe_step(step))
        self.steps_list.pack(fill='both', expand=True)
        self.steps_list.bind("<<ListboxSelect>>", self.on_select)

        detail = ttk.Frame(self.window)
        detail.pack(side='left', fill='both', expand=True, padx=10, pady=10)

        self.title_var = tk.StringVar()
        self.description_var = tk.StringVar()
        ttk.Label(detail, textvariable=self.title_var, font=('TkDefaultFont', 14, 'bold')).pack(anchor='w')
        ttk.Label(detail, textvariable=self.description_var, wraplength=700).pack(anchor='w', pady=(0, 10))

        table_frame = ttk.LabelFrame(detail, text="Transition Table")
        table_frame.pack(fill='x')
        columns = ["__state__"] + list(self.player.symbols)
        self.table = ttk.Treeview(table_frame, columns=columns, show='headings', height=6)
        self.table.heading("__state__", text="State")
        for sym in self.player.symbols:
            self.table.heading(sym, text=sym)
        self.table.pack(fill='x')

        self.fig, self.ax = plt.subplots(figsize=(7, 4))
        self.figure_canvas = FigureCanvasTkAgg(self.fig, detail)
        self.figure_canvas.get_tk_widget().pack(fill='both', expand=True, pady=10)

        nav = ttk.Frame(detail)
        nav.pack(fill='x')
        self.prev_button = ttk.Button(nav, text="← Previous", command=self.previous)
        self.prev_button.pack(side='left')
        self.next_button = ttk.Button(nav, text="Next →", command=self.next)
        self.next_button.pack(side='right')

    def on_select(self, event):
        selection = self.steps_list.curselection()
        if selection:
            self.player.jump(selection[0])
            self.show()

    def previous(self):
        self.player.previous()
        self.show()

    def next(self):
        self.player.next()
        self.show()

    def show(self):
        step = self.player.current
        if step is None:
            return

        self.title_var.set(f"Step {step.step}")
        self.description_var.set(step.description)
        self.steps_list.selection_clear(0, tk.END)
        self.steps_list.selection_set(self.player.index)
        self.steps_list.see(self.player.index)

        self.table.delete(*self.table.get_children())
        for row in self.player.table():
            self.table.insert("", tk.END, values=[row.marked_label] + [row.cells[s] for s in self.player.symbols])

        self.ax.clear()
        AutomatonVisualizer.for_step(step).plot(self.ax, f"DFA after step {step.step}")
        self.fig.tight_layout()
        self.figure_canvas.draw()

        self.prev_button.state(['disabled'] if self.player.at_start else ['!disabled'])
        self.next_button.state(['disabled'] if self.player.at_end else ['!disabled'])
