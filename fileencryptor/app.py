# File Encryption Tool - Python + CustomTkinter (AES-128-CBC)
# -----------------------------------------------------------
# Desktop front-end for the streaming engine in this package.
#
# - Choose a file, enter the key, Encrypt or Decrypt
# - Output goes next to the input (or to a chosen folder):
#     name.ext -> name.ext.encrypted -> name.ext.decrypted
# - Progress bar, percent and elapsed time, Cancel button
# - Status box mirrors the package log

import logging
from pathlib import Path

import customtkinter as ctk
from tkinter import filedialog, messagebox

from .models import Direction
from .naming import default_output_path
from .report import describe_result, format_elapsed
from .worker import BackgroundOperation, distinct_progress

# Progress reaches Tk at most once per chunk and once per distinct percent.
GUI_CHUNK_SIZE = 1024 * 1024

log = logging.getLogger(__name__)

_NOTICE_BOXES = {
    "info": messagebox.showinfo,
    "warning": messagebox.showwarning,
    "error": messagebox.showerror,
}


class _StatusLogHandler(logging.Handler):
    def __init__(self, app: "FileEncryptionApp"):
        super().__init__(level=logging.INFO)
        self.app = app
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record):
        msg = self.format(record)
        self.app.after(0, lambda: self.app._log(msg))


class FileEncryptionApp(ctk.CTk):
    def __init__(self):
        super().__init__()
        self.title("File Encryption Tool")
        self.geometry("780x500")
        ctk.set_appearance_mode("dark")
        ctk.set_default_color_theme("blue")

        self.selected_file = None
        self.output_dir = None
        self.job = None
        self._closing = False

        self._build_ui()
        self._lock_ui(False)
        self._log_handler = _StatusLogHandler(self)
        logging.getLogger("fileencryptor").addHandler(self._log_handler)
        self.protocol("WM_DELETE_WINDOW", self._on_close)
        log.info("File Encryption Tool started")

    # ---------- UI layout ----------
    def _build_ui(self):
        top = ctk.CTkFrame(self, corner_radius=16)
        top.pack(fill="x", padx=16, pady=(16, 8))

        title = ctk.CTkLabel(top, text="File Encryption Tool", font=("Segoe UI", 22, "bold"))
        title.pack(side="left", padx=12, pady=12)

        picker = ctk.CTkFrame(self, corner_radius=16)
        picker.pack(fill="x", padx=16, pady=8)

        self.file_entry = ctk.CTkEntry(picker, placeholder_text="No file selected", width=520)
        self.file_entry.pack(side="left", padx=(12, 8), pady=12)

        browse_btn = ctk.CTkButton(picker, text="Choose File", command=self._choose_file)
        browse_btn.pack(side="left", padx=(0, 12))

        out_btn = ctk.CTkButton(picker, text="Output Folder (optional)", command=self._choose_output)
        out_btn.pack(side="left", padx=(0, 12))

        pw_frame = ctk.CTkFrame(self, corner_radius=16)
        pw_frame.pack(fill="x", padx=16, pady=8)

        self.pw_entry = ctk.CTkEntry(pw_frame, placeholder_text="Encryption key…", show="*", width=520)
        self.pw_entry.pack(side="left", padx=(12, 8), pady=12)

        self.show_pw = ctk.CTkCheckBox(pw_frame, text="Show", command=self._toggle_pw)
        self.show_pw.pack(side="left", padx=(0, 12))

        actions = ctk.CTkFrame(self, corner_radius=16)
        actions.pack(fill="x", padx=16, pady=8)

        self.encrypt_btn = ctk.CTkButton(
            actions, text="Encrypt", width=140, command=lambda: self._start(Direction.ENCRYPT))
        self.encrypt_btn.pack(side="left", padx=12, pady=12)

        self.decrypt_btn = ctk.CTkButton(
            actions, text="Decrypt", width=140, command=lambda: self._start(Direction.DECRYPT))
        self.decrypt_btn.pack(side="left", padx=12, pady=12)

        self.cancel_btn = ctk.CTkButton(actions, text="Cancel", command=self._cancel_job, width=120, state="disabled")
        self.cancel_btn.pack(side="left", padx=12, pady=12)

        prog_wrap = ctk.CTkFrame(self, corner_radius=16)
        prog_wrap.pack(fill="x", padx=16, pady=8)

        self.progress = ctk.CTkProgressBar(prog_wrap)
        self.progress.set(0)
        self.progress.pack(fill="x", padx=12, pady=(16, 8))

        labels = ctk.CTkFrame(prog_wrap, fg_color="transparent")
        labels.pack(fill="x", padx=12)
        self.percent_label = ctk.CTkLabel(labels, text="0%")
        self.percent_label.pack(side="left")
        self.time_label = ctk.CTkLabel(labels, text="Time: 0:00:00")
        self.time_label.pack(side="right")

        self.status = ctk.CTkTextbox(prog_wrap, height=160)
        self.status.pack(fill="both", expand=True, padx=12, pady=(8, 12))
        self.status.insert("end", "Ready. Choose a file, enter the key, then Encrypt/Decrypt.\n")
        self.status.configure(state="disabled")

    # ---------- Helpers ----------
    def _log(self, msg: str):
        self.status.configure(state="normal")
        self.status.insert("end", msg + "\n")
        self.status.see("end")
        self.status.configure(state="disabled")

    def _toggle_pw(self):
        self.pw_entry.configure(show="" if self.show_pw.get() else "*")

    def _choose_file(self):
        path = filedialog.askopenfilename(title="Choose a file to encrypt/decrypt")
        if path:
            self.selected_file = Path(path)
            self.file_entry.delete(0, "end")
            self.file_entry.insert(0, str(self.selected_file))
            log.info("Selected file: %s", self.selected_file)

    def _choose_output(self):
        path = filedialog.askdirectory(title="Choose output folder")
        if path:
            self.output_dir = Path(path)
            log.info("Output folder set to: %s", self.output_dir)

    # Worker-thread callbacks; widgets are only touched through after().
    def _progress_cb(self, percent, elapsed):
        self.after(0, lambda: self._show_progress(percent, elapsed))

    def _done_cb(self, result):
        self.after(0, lambda: self._finish_job(result))

    def _show_progress(self, percent, elapsed):
        if self.job is None or self.job.cancel_token.is_set():
            return
        self.progress.set(max(0.0, min(1.0, percent / 100)))
        self.percent_label.configure(text=f"{percent}%")
        self.time_label.configure(text=f"Time: {format_elapsed(elapsed)}")

    def _lock_ui(self, working: bool):
        state = "disabled" if working else "normal"
        self.encrypt_btn.configure(state=state)
        self.decrypt_btn.configure(state=state)
        self.cancel_btn.configure(state="normal" if working else "disabled")
        self.file_entry.configure(state=state)
        self.pw_entry.configure(state=state)

    def _cancel_job(self):
        if self.job is not None and self.job.cancel():
            self.cancel_btn.configure(state="disabled")
            self.percent_label.configure(text="Cancelling…")

    def _validate_inputs(self):
        if not self.selected_file:
            log.warning("Operation requested without a file")
            messagebox.showwarning("Missing file", "Please choose a file first.")
            return False
        if not self.pw_entry.get():
            log.warning("Operation requested without a key")
            messagebox.showwarning("Missing key", "Please enter the encryption key.")
            return False
        return True

    # ---------- Encrypt/Decrypt flow ----------
    def _start(self, direction: Direction):
        if self.job is not None or not self._validate_inputs():
            return
        in_path = self.selected_file
        out_path = default_output_path(in_path, direction)
        if self.output_dir:
            out_path = self.output_dir / out_path.name

        self._lock_ui(True)
        self.progress.set(0)
        self.percent_label.configure(text="0%")
        self.time_label.configure(text="Time: 0:00:00")
        self.job = BackgroundOperation(
            direction, in_path, out_path, self.pw_entry.get(),
            on_progress=distinct_progress(self._progress_cb),
            on_done=self._done_cb,
            chunk_size=GUI_CHUNK_SIZE,
        ).start()

    def _finish_job(self, result):
        self.job = None
        if self._closing:
            return
        self._lock_ui(False)
        notice = describe_result(result)
        if not result.ok:
            self.progress.set(0)
            self.percent_label.configure(text="0%")
        _NOTICE_BOXES[notice.level](notice.title, notice.message)

    def _on_close(self):
        self._closing = True
        if self.job is not None and self.job.running:
            # Wait for the worker to observe the cancellation and clean up.
            self.job.cancel()
            self.after(50, self._on_close)
            return
        log.info("File Encryption Tool closed")
        logging.getLogger("fileencryptor").removeHandler(self._log_handler)
        self.destroy()


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    app = FileEncryptionApp()
    app.mainloop()


if __name__ == "__main__":
    main()
