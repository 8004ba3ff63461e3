"""luablocks - build Lua programs as blocks or text and run them on a board."""

import argparse
import logging
import sys
import tkinter as tk
from tkinter import ttk, messagebox, filedialog

from . import config
from .blocks import BLOCK_TYPES, CATEGORIES, FIELDS, Block, Workspace
from .board import BoardService, SerialConnection, detect_port
from .messages import LANGUAGE_NAME, Messages
from .session import SessionController
from .state import (
    BLOCKS, BOARD, BOARD_CONTENT, BOARD_TAB, DISCARD, LINK, LOAD, PANES,
    REBOOT, RUN, SAVE, STOP, TEXT, UPGRADE,
)
from .tree import DIRECTORY

log = logging.getLogger(__name__)

# Colors
COLOR_SELECTED = "#3584e4"
COLOR_DEFAULT_BG = "#d0d0d0"
COLOR_LINKED = "red"
COLOR_UNLINKED = "black"
EDITOR_BG = "#1e1e1e"
EDITOR_FG = "#d4d4d4"


class Dialogs:
    """Progress, information, alert and confirmation dialogs."""

    def __init__(self, root, messages):
        self.root = root
        self.messages = messages
        self._progress = None
        self._bar = None

    def show_progress(self, message, percent=None):
        # A new operation replaces whatever progress dialog is showing
        self.hide_progress()
        win = tk.Toplevel(self.root)
        win.title(message)
        win.transient(self.root)
        win.resizable(False, False)
        win.protocol("WM_DELETE_WINDOW", lambda: None)

        ttk.Label(win, text=message).pack(padx=16, pady=(12, 4))
        if percent is None:
            bar = ttk.Progressbar(win, mode="indeterminate", length=280)
            bar.start(10)
        else:
            bar = ttk.Progressbar(win, mode="determinate", maximum=100, value=percent, length=280)
        bar.pack(padx=16, pady=(0, 12))
        self._progress, self._bar = win, bar

    def update_progress(self, percent):
        if self._bar is None:
            return
        self._bar.stop()
        self._bar.configure(mode="determinate", value=percent)

    def hide_progress(self):
        if self._progress is not None:
            self._progress.destroy()
        self._progress = self._bar = None

    def show_info(self, message, dismiss_ms=config.INFO_DISMISS_MS):
        win = tk.Toplevel(self.root)
        win.title(self.messages.lookup("information"))
        win.transient(self.root)
        ttk.Label(win, text=message).pack(padx=24, pady=16)
        win.after(dismiss_ms, win.destroy)

    def show_alert(self, message):
        messagebox.showerror(self.messages.lookup("alert"), message, parent=self.root)

    def confirm(self, message, on_result):
        on_result(messagebox.askyesno(self.messages.lookup("confirm"), message, parent=self.root))


class BlocksPane:
    """Block workspace: program list on top, toolbox below."""

    def __init__(self, parent, messages):
        self.frame = ttk.Frame(parent)
        self.messages = messages
        self.model = Workspace()
        self.on_change = None

        self.listbox = tk.Listbox(self.frame, font=("monospace", 10), activestyle="none",
                                  selectmode="browse")
        scrollbar = ttk.Scrollbar(self.frame, command=self.listbox.yview)
        self.listbox.configure(yscrollcommand=scrollbar.set)

        # ── Toolbox ──
        toolbox = ttk.LabelFrame(self.frame, text=messages.lookup("blocks"))
        toolbox.pack(fill="x", side="bottom", padx=8, pady=(0, 8))
        scrollbar.pack(side="right", fill="y", pady=8)
        self.listbox.pack(fill="both", expand=True, padx=(8, 0), pady=8)

        row1 = ttk.Frame(toolbox)
        row1.pack(fill="x", padx=8, pady=4)

        ttk.Label(row1, text=messages.lookup("category")).pack(side="left")
        self.cat_var = tk.StringVar(value="All")
        cat_combo = ttk.Combobox(row1, textvariable=self.cat_var, values=CATEGORIES,
                                 state="readonly", width=10)
        cat_combo.pack(side="left", padx=4)
        cat_combo.bind("<<ComboboxSelected>>", self._on_category_change)

        ttk.Label(row1, text=messages.lookup("block")).pack(side="left", padx=(12, 0))
        self.block_var = tk.StringVar()
        self.block_combo = ttk.Combobox(row1, textvariable=self.block_var, state="readonly", width=12)
        self.block_combo.pack(side="left", padx=4)
        self.block_combo.bind("<<ComboboxSelected>>", self._on_block_change)

        row2 = ttk.Frame(toolbox)
        row2.pack(fill="x", padx=8, pady=(0, 8))

        ttk.Label(row2, text=messages.lookup("name")).pack(side="left")
        self.name_var = tk.StringVar()
        self.name_entry = ttk.Entry(row2, textvariable=self.name_var, width=12)
        self.name_entry.pack(side="left", padx=4)

        ttk.Label(row2, text=messages.lookup("value")).pack(side="left", padx=(12, 0))
        self.value_var = tk.StringVar()
        self.value_entry = ttk.Entry(row2, textvariable=self.value_var, width=20)
        self.value_entry.pack(side="left", padx=4)

        ttk.Button(row2, text=messages.lookup("add"), command=self._add_block).pack(side="left", padx=4)
        ttk.Button(row2, text=messages.lookup("remove"), command=self._remove_block).pack(side="left")

        self._on_category_change()

    # ── Workspace interface ────────────────────────────────

    def clear(self):
        self.model.clear()
        self._render()

    def block_count(self):
        return self.model.block_count()

    def set_visible(self, visible):
        self.model.set_visible(visible)

    def to_text(self):
        return self.model.to_text()

    def parse(self, text):
        return self.model.parse(text)

    def load_program(self, blocks):
        self.model.load_program(blocks)
        self._render()

    def from_text(self, text):
        self.model.from_text(text)
        self._render()

    def to_data(self):
        return self.model.to_data()

    def from_data(self, text):
        self.model.from_data(text)
        self._render()

    # ── Toolbox ────────────────────────────────────────────

    def _on_category_change(self, event=None):
        cat = self.cat_var.get()
        names = [name for name, (category, _, _) in BLOCK_TYPES.items()
                 if cat == "All" or category == cat]
        self.block_combo["values"] = names
        if names:
            self.block_combo.current(0)
            self._on_block_change()

    def _on_block_change(self, event=None):
        fields = FIELDS.get(self.block_var.get(), ())
        self.name_entry.configure(state="normal" if "name" in fields else "disabled")
        self.value_entry.configure(state="normal" if "value" in fields else "disabled")

    def _add_block(self):
        block_type = self.block_var.get()
        if block_type not in BLOCK_TYPES:
            return
        values = {"name": self.name_var.get().strip(), "value": self.value_var.get().strip()}
        fields = {f: values[f] for f in FIELDS[block_type]}
        if any(not v for v in fields.values()):
            messagebox.showwarning(self.messages.lookup("alert"),
                                   self.messages.lookup("fillFields").format(fields=", ".join(fields)),
                                   parent=self.frame)
            return

        selection = self.listbox.curselection()
        index = selection[0] + 1 if selection else None
        self.model.add(Block(block_type, fields), index)
        self._render()
        self._changed()

    def _remove_block(self):
        selection = self.listbox.curselection()
        if not selection:
            return
        self.model.remove(selection[0])
        self._render()
        self._changed()

    def _changed(self):
        if self.on_change:
            self.on_change()

    def _render(self):
        self.listbox.delete(0, "end")
        lines = self.model.to_text().splitlines()
        for i, (line, block) in enumerate(zip(lines, self.model.blocks)):
            self.listbox.insert("end", line)
            self.listbox.itemconfig(i, foreground=block.colour)


class EditorPane:
    """Lua text editor."""

    def __init__(self, parent):
        self.frame = ttk.Frame(parent)
        self.text = tk.Text(self.frame, wrap="none", font=("monospace", 10), undo=True,
                            bg=EDITOR_BG, fg=EDITOR_FG, insertbackground=EDITOR_FG)
        scrollbar = ttk.Scrollbar(self.frame, command=self.text.yview)
        self.text.configure(yscrollcommand=scrollbar.set)
        scrollbar.pack(side="right", fill="y", pady=8)
        self.text.pack(side="left", fill="both", expand=True, padx=(8, 0), pady=8)

    def get_text(self):
        # Text always appends a trailing newline
        return self.text.get("1.0", "end-1c")

    def set_text(self, text):
        self.text.delete("1.0", "end")
        self.text.insert("1.0", text)
        self.text.edit_reset()
        self.text.mark_set("insert", "1.0")

    def focus(self):
        self.text.focus_set()


class BoardPane:
    """Board filesystem tree; item ids are absolute board paths."""

    def __init__(self, parent):
        self.frame = ttk.Frame(parent)
        self.on_click = None
        self.enabled = True
        self.root_path = ""

        self.tree = ttk.Treeview(self.frame, show="tree", selectmode="browse")
        scrollbar = ttk.Scrollbar(self.frame, command=self.tree.yview)
        self.tree.configure(yscrollcommand=scrollbar.set)
        scrollbar.pack(side="right", fill="y", pady=8)
        self.tree.pack(fill="both", expand=True, padx=(8, 0), pady=8)

        self.tree.tag_configure(DIRECTORY, foreground=COLOR_SELECTED)
        self.tree.bind("<Button-1>", self._on_button)

    def _on_button(self, event):
        row = self.tree.identify_row(event.y)
        if row and self.enabled and self.on_click:
            self.on_click(row)
        # The tree is rebuilt by the browser; skip Treeview's own open/close
        return "break"

    def set_enabled(self, enabled):
        self.enabled = enabled

    def _item(self, path):
        return "" if path == self.root_path else path

    # ── Tree view interface ────────────────────────────────

    def reset(self, location):
        self.root_path = location
        self.tree.delete(*self.tree.get_children(""))

    def show_listing(self, path, nodes):
        parent = self._item(path)
        if parent and not self.tree.exists(parent):
            return
        self.tree.delete(*self.tree.get_children(parent))
        for node in nodes:
            text = f"{node.name}/" if node.is_directory else node.name
            self.tree.insert(parent, "end", iid=node.path, text=text, tags=(node.kind,))
        if parent:
            self.tree.item(parent, open=True)

    def remove_listing(self, path):
        parent = self._item(path)
        if parent and not self.tree.exists(parent):
            return
        self.tree.delete(*self.tree.get_children(parent))
        if parent:
            self.tree.item(parent, open=False)


class StudioWindow:
    """Main window; also the view the session controller renders into."""

    def __init__(self, root, messages, port=""):
        self.root = root
        self.messages = messages
        self.board = BoardService(SerialConnection(), schedule=root.after)
        self.board.on_disconnect = self._connection_lost
        self.dialogs = Dialogs(root, messages)

        self._build_ui()
        self.controller = SessionController(
            self.blocks_pane, self.editor_pane, self.board, self.dialogs, messages,
            view=self, tree_view=self.board_pane,
        )
        self.blocks_pane.on_change = self.controller.workspace_changed
        self.board_pane.on_click = self.controller.browser.click
        self.controller.activate(BLOCKS)

        if port:
            self.port_var.set(port)
            self.root.after(300, self._toggle_connect)

    def _build_ui(self):
        msg = self.messages.lookup

        # ── Connection bar ──
        conn_frame = ttk.Frame(self.root)
        conn_frame.pack(fill="x", padx=8, pady=(8, 0))

        ttk.Label(conn_frame, text=msg("port")).pack(side="left")
        self.port_var = tk.StringVar()
        self.port_combo = ttk.Combobox(conn_frame, textvariable=self.port_var, width=18, state="readonly")
        self.port_combo.pack(side="left", padx=4)
        self._refresh_ports()

        self.connect_btn = ttk.Button(conn_frame, text=msg("connect"), command=self._toggle_connect)
        self.connect_btn.pack(side="left", padx=4)
        ttk.Button(conn_frame, text=msg("refreshPorts"), command=self._refresh_ports).pack(side="left")

        self.conn_label = ttk.Label(conn_frame, text="  " + msg("disconnected"), foreground="red")
        self.conn_label.pack(side="right")

        # ── Toolbar ──
        toolbar = ttk.Frame(self.root)
        toolbar.pack(fill="x", padx=8, pady=8)

        self.buttons = {}
        commands = [
            (LINK, self._toggle_linked),
            (DISCARD, lambda: self.controller.discard()),
            (LOAD, self._load),
            (SAVE, self._save),
            (RUN, lambda: self.controller.run()),
            (STOP, lambda: self.controller.stop()),
            (REBOOT, lambda: self.controller.reboot()),
            (UPGRADE, self._upgrade),
        ]
        for action, command in commands:
            btn = tk.Button(toolbar, text=msg(action), command=command, relief="groove",
                            fg=COLOR_UNLINKED)
            btn.pack(side="left", padx=2)
            self.buttons[action] = btn

        # ── Tabs ──
        tab_frame = ttk.Frame(self.root)
        tab_frame.pack(fill="x", padx=8)

        self.tabs = {}
        for pane in PANES:
            btn = tk.Button(tab_frame, relief="groove", bg=COLOR_DEFAULT_BG,
                            activebackground=COLOR_SELECTED,
                            command=lambda p=pane: self.controller.activate(p))
            btn.pack(side="left", padx=(0, 4))
            self.tabs[pane] = btn

        # ── Content ──
        content = ttk.Frame(self.root)
        content.pack(fill="both", expand=True)
        content.rowconfigure(0, weight=1)
        content.columnconfigure(0, weight=1)

        self.blocks_pane = BlocksPane(content, self.messages)
        self.editor_pane = EditorPane(content)
        self.board_pane = BoardPane(content)
        self.panes = {
            BLOCKS: self.blocks_pane.frame,
            TEXT: self.editor_pane.frame,
            BOARD: self.board_pane.frame,
        }
        for frame in self.panes.values():
            frame.grid(row=0, column=0, sticky="nsew")

        # ── Status bar ──
        self.status_var = tk.StringVar(value="")
        ttk.Label(self.root, textvariable=self.status_var, relief="sunken", anchor="w").pack(
            fill="x", side="bottom", padx=8, pady=(0, 8)
        )

    # ── View interface ─────────────────────────────────────

    def set_tab_active(self, pane, active):
        if active:
            self.tabs[pane].config(relief="solid", bg=COLOR_SELECTED, fg="white")
        else:
            self.tabs[pane].config(relief="groove", bg=COLOR_DEFAULT_BG, fg="black")

    def set_pane_visible(self, pane, visible):
        if visible:
            self.panes[pane].grid()
        else:
            self.panes[pane].grid_remove()

    def set_tab_label(self, pane, text):
        self.tabs[pane].config(text=text)

    def set_enabled(self, action, enabled):
        state = "normal" if enabled else "disabled"
        if action == BOARD_TAB:
            self.tabs[BOARD].config(state=state)
        elif action == BOARD_CONTENT:
            self.board_pane.set_enabled(enabled)
        else:
            self.buttons[action].config(state=state)

    def set_linked_indicator(self, linked):
        self.buttons[LINK].config(fg=COLOR_LINKED if linked else COLOR_UNLINKED)

    def set_status(self, text):
        self.status_var.set(text)

    # ── Connection ─────────────────────────────────────────

    def _refresh_ports(self):
        ports = SerialConnection.list_ports()
        self.port_combo["values"] = ports
        if ports and not self.port_var.get():
            detected = detect_port()
            self.port_var.set(detected or ports[0])

    def _toggle_connect(self):
        if self.board.is_connected():
            self.board.disconnect()
            self._show_disconnected()
            self.controller.board_disconnected()
            return

        port = self.port_var.get()
        if not port:
            messagebox.showerror(self.messages.lookup("alert"), self.messages.lookup("noPort"))
            return
        self.set_status(self.messages.lookup("connecting").format(port=port))
        self.connect_btn.config(state="disabled")
        self.board.connect(port, self._on_connected, self._on_connect_failed)

    def _on_connected(self, port):
        self.connect_btn.config(state="normal", text=self.messages.lookup("disconnect"))
        self.conn_label.config(text=f"  {port}", foreground="green")
        self.set_status("")
        self.controller.board_connected()
        self.controller.identify(self._check_bootloader)

    def _on_connect_failed(self, err):
        self.connect_btn.config(state="normal")
        self.set_status(self.messages.lookup("connectionFailed").format(error=err))

    def _connection_lost(self):
        self._show_disconnected()
        self.controller.board_disconnected()

    def _show_disconnected(self):
        self.connect_btn.config(text=self.messages.lookup("connect"))
        self.conn_label.config(text="  " + self.messages.lookup("disconnected"), foreground="red")

    def _check_bootloader(self, info):
        if info.get("bootloader"):
            self.controller.board_in_bootloader(lambda ok: ok and self._upgrade())

    # ── Actions ────────────────────────────────────────────

    def _toggle_linked(self):
        self.controller.toggle_linked()

    def _filetypes(self):
        ext = self.controller.file_extension()
        return ext, [(f"{ext} files", f"*.{ext}")]

    def _load(self):
        ext, filetypes = self._filetypes()
        if ext is None:
            return
        path = filedialog.askopenfilename(parent=self.root, filetypes=filetypes)
        if path:
            self.controller.load(path)

    def _save(self):
        ext, filetypes = self._filetypes()
        if ext is None:
            return
        path = filedialog.asksaveasfilename(parent=self.root, filetypes=filetypes,
                                            defaultextension=f".{ext}",
                                            initialfile=f"untitled.{ext}")
        if path:
            self.controller.save(path)

    def _upgrade(self):
        path = filedialog.askopenfilename(parent=self.root,
                                          filetypes=[("hex files", "*.hex")])
        if not path:
            return
        try:
            with open(path, encoding="ascii") as f:
                contents = f.read()
        except (OSError, UnicodeDecodeError) as e:
            self.dialogs.show_alert(self.messages.lookup("badFirmware").format(error=e))
            return
        self.controller.upgrade_firmware(contents)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Build Lua programs as blocks or text and run them on a board.")
    parser.add_argument("--port", default=config.PORT, help="serial port to connect to on start")
    parser.add_argument("--lang", default=config.LANG, choices=sorted(LANGUAGE_NAME))
    parser.add_argument("--debug", action="store_true", help="log serial traffic")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else config.LOG_LEVEL.upper(),
        format="[%(name)s] %(message)s",
        stream=sys.stderr,
    )

    messages = Messages(args.lang)
    root = tk.Tk(className="luablocks")
    root.title(messages.lookup("title"))
    root.geometry("800x600")

    StudioWindow(root, messages, port=args.port)
    root.mainloop()


if __name__ == "__main__":
    main()
