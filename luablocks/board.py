"""Serial link to the board and the asynchronous command service built on it."""

import base64
import json
import logging
import threading
import time

import serial
import serial.tools.list_ports

from . import config
from .tree import DIRECTORY, FILE

log = logging.getLogger(__name__)

ENTRY_KINDS = {"d": DIRECTORY, "f": FILE}


class BoardError(Exception):
    """A command failed on the board or on the way to it."""


def detect_port():
    """Auto-detect the most likely serial port."""
    for p in serial.tools.list_ports.comports():
        if "ACM" in p.device or "USB" in p.device:
            return p.device
    ports = [p.device for p in serial.tools.list_ports.comports()]
    return ports[0] if ports else None


class SerialConnection:
    def __init__(self):
        self.ser = None
        self.port = None
        self.lock = threading.Lock()

    def connect(self, port, baud=config.BAUD):
        self.ser = serial.Serial(port, baud, timeout=1)
        self.port = port
        time.sleep(config.BOOT_SETTLE_S)  # Let boot messages flush
        self.ser.reset_input_buffer()

    def disconnect(self):
        if self.ser and self.ser.is_open:
            self.ser.close()
        self.ser = None
        self.port = None

    @property
    def connected(self):
        return self.ser is not None and self.ser.is_open

    def send_command(self, cmd_dict):
        """Send a JSON command and return the first JSON reply.

        Non-JSON lines (board log output) are skipped. An ERROR reply,
        a missing reply or a serial failure raise BoardError.
        """
        if not self.connected:
            raise BoardError("board not connected")
        with self.lock:
            try:
                line = json.dumps(cmd_dict) + "\n"
                self.ser.reset_input_buffer()
                self.ser.write(line.encode())
                self.ser.flush()
                for _ in range(config.RESPONSE_LINES):
                    raw = self.ser.readline().decode(errors="replace").strip()
                    if not raw:
                        continue
                    log.debug("rx: %s", raw)
                    if not raw.startswith("{"):
                        continue
                    try:
                        reply = json.loads(raw)
                    except json.JSONDecodeError:
                        continue
                    if reply.get("response") == "ERROR":
                        raise BoardError(reply.get("message", "Unknown error"))
                    return reply
            except serial.SerialException as e:
                self.disconnect()
                raise BoardError(f"serial error: {e}") from e
        raise BoardError(f"no response for {cmd_dict.get('cmd')}")

    @staticmethod
    def list_ports():
        return [p.device for p in serial.tools.list_ports.comports()]


class BoardService:
    """Board commands with completion callbacks.

    Work runs on a daemon thread; callbacks are handed to ``schedule``
    (``root.after`` in the application) so they run on the GUI thread.
    """

    def __init__(self, conn=None, schedule=None, spawn=None):
        self.conn = conn or SerialConnection()
        self.schedule = schedule or (lambda delay, fn, *args: fn(*args))
        self.spawn = spawn or self._spawn_thread
        self.on_disconnect = None

    @staticmethod
    def _spawn_thread(worker):
        threading.Thread(target=worker, daemon=True).start()

    # ── Async helper ────────────────────────────────────────

    def _run_async(self, work_fn, on_ok, on_err):
        """Run work_fn in the background, then report on the GUI thread."""
        def _worker():
            was_connected = self.conn.connected
            try:
                result = work_fn()
            except BoardError as e:
                lost = was_connected and not self.conn.connected
                self.schedule(0, on_err, e)
                if lost and self.on_disconnect:
                    self.schedule(0, self.on_disconnect)
                return
            except Exception as e:
                log.exception("board command crashed")
                self.schedule(0, on_err, BoardError(str(e)))
                return
            self.schedule(0, on_ok, result)
        self.spawn(_worker)

    # ── Connection ─────────────────────────────────────────

    def current_port(self):
        return self.conn.port

    def is_connected(self):
        return self.conn.connected

    def connect(self, port, on_ok, on_err):
        def do_connect():
            try:
                self.conn.connect(port)
            except (serial.SerialException, OSError) as e:
                raise BoardError(str(e)) from e
            return port
        self._run_async(do_connect, on_ok, on_err)

    def disconnect(self):
        self.conn.disconnect()

    def _command(self, port, cmd_dict, on_ok, on_err, extract=None):
        if port != self.conn.port:
            log.debug("command for %s sent to %s", port, self.conn.port)

        def work():
            reply = self.conn.send_command(cmd_dict)
            return extract(reply) if extract else reply
        self._run_async(work, on_ok, on_err)

    # ── Commands ───────────────────────────────────────────

    def run(self, port, path, code, on_ok, on_err):
        self._command(port, {"cmd": "RUN", "path": path, "code": code}, on_ok, on_err)

    def stop(self, port, on_ok, on_err):
        self._command(port, {"cmd": "STOP"}, on_ok, on_err)

    def reboot(self, port, on_ok, on_err):
        self._command(port, {"cmd": "REBOOT"}, on_ok, on_err)

    def identify(self, port, on_ok, on_err):
        self._command(port, {"cmd": "IDENTIFY"}, on_ok, on_err)

    def list_directory(self, port, path, on_ok, on_err):
        def entries(reply):
            if reply.get("response") != "DIR":
                raise BoardError(f"unexpected reply {reply.get('response')}")
            result = []
            for entry in reply.get("entries", []):
                kind = ENTRY_KINDS.get(entry.get("type"))
                if kind is None:
                    log.debug("skipping entry %r", entry)
                    continue
                result.append({"name": entry["name"], "kind": kind})
            return result
        self._command(port, {"cmd": "LIST_DIR", "path": path}, on_ok, on_err, entries)

    def receive_file(self, port, path, on_ok, on_err):
        def contents(reply):
            if reply.get("response") != "FILE":
                raise BoardError(f"unexpected reply {reply.get('response')}")
            return reply.get("contents", "")
        self._command(port, {"cmd": "RECV_FILE", "path": path}, on_ok, on_err, contents)

    def upgrade_firmware(self, port, image, on_progress, on_ok, on_err):
        def do_upgrade():
            total = image.size
            sent = 0
            self.conn.send_command({"cmd": "FLASH_BEGIN", "size": total})
            for address, data in image.chunks():
                self.conn.send_command({
                    "cmd": "FLASH_DATA",
                    "address": address,
                    "data": base64.b64encode(data).decode(),
                })
                sent += len(data)
                self.schedule(0, on_progress, sent * 100 // total)
            end = {"cmd": "FLASH_END"}
            if image.start is not None:
                end["start"] = image.start
            return self.conn.send_command(end)
        self._run_async(do_upgrade, on_ok, on_err)
