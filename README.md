# textkernel

A pure-Python model of the parts of a small x86 teaching kernel that still
mean something without real hardware. Each part is a plain object that you
can drive and inspect.

## Modules

- `textkernel.filesystem` is the read-only boot-image file system.
  `build_image` builds an image from a mapping of names to contents. A name
  can also be mapped to a `FileType` to make an entry of that type.
  `FileSystem` parses an image. It finds entries with `read_dentry_by_name`
  and `read_dentry_by_index`, reads bytes with `read_data`, and reports
  lengths with `file_length`. It lists the entries in use with `entries` and
  `listing`. `open_file` and `open_directory` return `FileHandle` and
  `DirectoryHandle` objects. Both are context managers. Their `write` always
  fails. A failure raises `FileSystemError`, which is a subclass of `OSError`.
- `textkernel.console` provides `TextScreen`, an 80×25 screen of
  character/attribute cells with a write position and a cursor. It wraps at
  the end of a row and scrolls at the bottom. A tab prints nothing.
  `put`, `write`, `move_to`, `char_at`, `attribute_at`, `row_text` and
  `cursor_position` drive and read it.
- `textkernel.keyboard` provides `KeyboardDriver`. It turns scancodes passed
  to `handle` into an edited line on a `TextScreen`. It supports shift, caps
  lock, tab, backspace, Enter, Ctrl+L to clear the screen, and a five-line
  up-arrow recall (`history`).
  - Finished lines are collected in `submitted`.
  - Alt+F1–F3 sets `switch_request`.
  - Ctrl+B sets `quote_requested`.
  - Ctrl+C sets `interrupt_requested`.

  `translate_scancode` maps a single make code to its character.
- `textkernel.pic` provides `Pic8259`, the cascaded master/slave interrupt
  controller. It is driven through a `PortBus` that records every port
  write. `init`, `enable_irq`, `disable_irq` and `send_eoi` do what their
  names say.
- `textkernel.descriptors` provides `IdtEntry` (with `pack` and
  `from_words`), `SegmentDescriptor` (with `pack`) and `GateKind`.
  `build_idt` builds the kernel's 256-entry interrupt table from a mapping
  of handler names to addresses.
- `textkernel.runner` supports running user programs on the host.
  - `Syscall` holds the system call numbers.
  - `split_command` splits a command line into an argument vector whose
    first item is `./name`.
  - `execute` runs that program and returns its exit status. A program
    killed by SIGKILL gives -1, and one ended by another signal gives 256.
  - `join_args` joins arguments into a buffer of bounded size.
  - `DirectoryReader` reads a host directory one name per call. Each name
    is cut to a NUL-padded record of at most 32 bytes.
- `textkernel.textfmt` provides C-style `c_strcmp` and `c_strncmp`,
  unsigned `itoa`, and `format_kernel`. `format_kernel` is the kernel's
  small printf dialect: `%%`, `%x`, `%#x`, `%u`, `%d`, `%c` and `%s`.

## Example

```python
from textkernel.filesystem import FileSystem, build_image
from textkernel.console import TextScreen

fs = FileSystem(build_image({"frame0.txt": b"hello\n"}))
with fs.open_file("frame0.txt") as handle:
    data = handle.read(64)

screen = TextScreen()
screen.write(data.decode())
print(screen.row_text(0).rstrip())   # hello
```

## What it does not do

- It does not boot, and it does not run a scheduler or paging.
- It has no command-line program.
- It does not report or handle CPU exceptions. `build_idt` only places the
  handler addresses you give it.
- It has no real-time clock and no blinking-character demo that runs over
  one.

## Running the tests

```
pip install -e .[test]
pytest
```