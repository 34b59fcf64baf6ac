# ulaunch

A pure-Python library for the data side of a console home menu. It reads and
writes the files the menu keeps on its storage: title entries and folders,
themes, the menu configuration and per-user passwords. It also covers the
binary messages that the menu and its daemon exchange.

## Installing

```
pip install .
```

To run the tests as well:

```
pip install .[test]
pytest
```

## Modules

- `ulaunch.results` – result codes. `make_result`, `result_module` and
  `result_description` build codes and split them apart. `result_by_name`
  looks up a code by module and name; it returns 0 if the name is unknown.
  `description_of` turns a code back into a "Module - Name" text. Failures
  are raised as `ResultError`, which keeps the code in `rc`.
- `ulaunch.convert` – formatting helpers:
  - `format_uid` gives the grouped, byte-swapped user-id text.
  - `parse_hex_u64` parses a leading hex number.
  - `format_application_id` gives 16 upper-case hex digits.
  - `format_result_display` gives `MMMM-DDDD`.
  - `format_result_hex` and `format_result` give the other result texts.
  - `starts_with` and `ends_with` compare strings.
- `ulaunch.storage` – `Layout` holds two roots: `base_dir` for the SD card
  data and `db_dir` for the save data. Its methods give the entries, themes,
  config, icon-cache and password paths. The module also has filesystem
  helpers: `exists_file`, `exists_directory`, `create_directory`,
  `create_file`, `delete_file`, `delete_directory`, `write_file`, `read_file`,
  `get_file_size`, `iter_files`, `iter_directories`, `move_file`, `copy_file`,
  `move_directory` and `copy_directory`. Beyond those come `load_json`, which
  raises `ResultError` for a missing or broken file, and `current_time`, which
  returns `HH:MM`.
- `ulaunch.passwords` – `pack_password` hashes a password of 1 to 15 bytes
  into a `PassBlock`. `PasswordStore` has `register`, `access`, `try_log` and
  `remove`, which act on the blocks stored under `Layout.db_dir`.
- `ulaunch.protocol` – the message enums: `MenuStartMode`, `MenuMessage`,
  `DaemonMessage`, `GeneralChannelMessage` and `AppletMessage`. It also has
  `TargetInput` and `SystemAppletMessage`, which convert to and from bytes.
  `CommandWriter` and `CommandReader` frame a command as a header followed by
  a 0x4000-byte data block. They work over any write or read function, for
  example those of the in-process `MemoryChannel`. `target_counter` and
  `resolve_target_input` apply the loader's defaults.
- `ulaunch.titles` – `TitleRecord`, `TitleFolder` and `TitleList`.
  - `read_nro_asset` reads the icon, NACP or romfs section of an NRO file,
    and `cache_homebrew` stores its icon in the icon cache.
  - `query_all_homebrew` finds `.nro` files.
  - `record_information` and `language_entry` give the text a record shows.
  - `save_record` and `remove_record` write and delete entry files.
  - `move_record_to`, `find_folder_by_name` and `exists_record` work on a
    title list.
  - `load_title_list` builds the list from the installed titles you pass in
    and the entry files.
- `ulaunch.themes` – `load_theme`, `load_themes`, `theme_resource` and
  `process_theme`. A resource missing from a theme is taken from the built-in
  theme directory. The configuration helpers are `create_config`,
  `load_config`, `ensure_config` and `save_config`.

## Example

```python
from pathlib import Path

from ulaunch.passwords import PasswordStore, pack_password
from ulaunch.storage import Layout
from ulaunch.themes import ensure_config, load_themes

root = Path("/tmp/menu")
layout = Layout(base_dir=root / "sd", db_dir=root / "save")
(root / "sd" / "themes").mkdir(parents=True, exist_ok=True)
(root / "save" / "user").mkdir(parents=True, exist_ok=True)

config = ensure_config(layout)
print(config.theme_name, [theme.base_name for theme in load_themes(layout)])

store = PasswordStore(layout)
password = "password"
store.register(pack_password(1, password))
store.try_log(pack_password(1, password))  # raises ResultError on mismatch
```

The directories have to exist beforehand. Writing a config file into a
missing directory is silently skipped. Registering a password into one raises
`ResultError` (PasswordWriteFail).

## What it does not do

This is a library of data and file formats only. It has no command, screen or
daemon process. It does not start, suspend or end applications, and it does
not load homebrew executables. It does not talk to the console's services, so
it does not list the installed titles itself: `load_title_list` takes them as
an argument. `record_information` likewise takes the control data of an
installed title as an argument. The only channel that carries commands is
the in-memory `MemoryChannel`.