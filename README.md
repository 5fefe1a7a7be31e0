# treetar

`treetar` is a library of helpers for moving content-addressed filesystem
trees (commits made of `commit`, `dirtree`, `dirmeta` and `file` objects)
through tar streams. It uses only the standard library.

What it offers:

- **Ref escaping** (`treetar.refescape`): turn arbitrary strings, such as
  container image references, into valid branch names and back again.
- **Object path layout** (`treetar.tarlayout`): build the
  `sysroot/ostree/repo/objects/xx/<rest>.<type>` paths used inside a tar
  stream, including the detached `.file-xattrs` and `.file-xattrs-link`
  objects, and map `usr/etc` back to `etc`.
- **Object path parsing** (`treetar.tarpaths`): the `ObjectType` enum,
  checksum validation, and parsing of object entry paths and xattrs link
  targets.
- **Xattrs bookkeeping** (`treetar.tarxattrs`): `XattrsCache` for detached
  xattrs content and the pending reference for the next file object, plus
  header checks for metadata entries.
- **Tar filtering and committing** (`treetar.tarfilter`): normalise paths,
  move `/etc` to `/usr/etc`, drop everything outside `/usr` and count what
  was dropped; `write_tar` feeds the filtered stream to `ostree commit`.
- **Inode collision checks** (`treetar.repair`): find objects that may have
  been wrongly hardlinked because 64-bit inode numbers were truncated to 32
  bits, and the `RepairResult` record.
- Small helpers: `statistics` (mean, standard deviation, median absolute
  deviation), `objectsource` (package/component metadata), `configpaths`
  (runtime and persistent config directories), `keyfile` (optional lookups on
  `configparser` objects), `selinux` (install domain check) and `utils`
  (log an exception and fall back to a default).

## Escaping refs

```python
from treetar.refescape import prefix_escape_for_ref, unprefix_unescape_ref

ref = prefix_escape_for_ref("container", "registry:example.com/os/base:latest")
assert ref == "container/registry_3A_example_2E_com/os/base_3A_latest"
assert unprefix_unescape_ref("container", ref) == "registry:example.com/os/base:latest"
```

ASCII alphanumerics and `-` pass through, `_` becomes `__`, `/` is kept only
between an alphanumeric and a following character, and any other character
becomes `_XX_` with its code point in upper-case hexadecimal. The empty string
and strings containing NUL raise `ValueError`.

## Object paths

```python
from treetar.tarlayout import v1_xattrs_object_path, map_path_v1
from treetar.tarpaths import ObjectType, parse_metadata_entry

checksum = "b8627e3ef0f255a322d2bd9610cfaaacc8f122b7f8d17c0e7e3caafa160f9fc7"
print(v1_xattrs_object_path(checksum))
# sysroot/ostree/repo/objects/b8/627e3ef0...9fc7.file-xattrs

parsed_checksum, objtype = parse_metadata_entry(
    "a8/6d80a3e9ff77c2e3144c787b7769b300f91ffd770221aac27bab854960b964.commit"
)
assert objtype is ObjectType.COMMIT

assert map_path_v1("usr/etc/foo") == "etc/foo"
```

Malformed paths, bad checksums and unknown object types raise `ValueError`.

## Detached xattrs

```python
import tarfile
from treetar.tarxattrs import XattrsCache

cache = XattrsCache()
member = tarfile.TarInfo("xattrs")
member.size = 3
xattrs_checksum = cache.cache_content(member, b"abc")

link = tarfile.TarInfo("link")
link.type = tarfile.REGTYPE
file_checksum = "b8627e3ef0f255a322d2bd9610cfaaacc8f122b7f8d17c0e7e3caafa160f9fc7"
cache.pending = (file_checksum, xattrs_checksum)
assert cache.take_for(file_checksum) == xattrs_checksum
assert cache.get(xattrs_checksum) == b"abc"
```

Errors are raised as `XattrsError`, a subclass of `ValueError`.

## Filtering a tar stream

```python
from treetar.tarfilter import filter_tar

with open("rootfs.tar", "rb") as src, open("filtered.tar", "wb") as dest:
    filtered = filter_tar(src, dest)

print(filtered)  # e.g. {"boot": 1, "var": 3}
```

Entries under `/etc` are rewritten to `./usr/etc`, entries outside `/usr` are
dropped and counted by their top-level directory, and paths containing `..`
raise `TarFilterError`. Modified regular files under `sysroot/ostree/repo/`
are held back, and the first modified hardlink to one becomes the real file.

`write_tar(repo_path, src, refname, options)` is a coroutine that runs the
`ostree` program (`ostree commit`, and `ostree ls`/`ostree checkout` when
`WriteTarOptions(selinux=True, base=...)` asks for the base commit's SELinux
policy). It returns a `WriteTarResult` with the new commit checksum and the
filtered counts, and raises `CommitError` when the command fails. The `ostree`
program must be installed for it to work.

## Checking for inode collisions

```python
from treetar.repair import check_inode_collision

result = check_inode_collision("/sysroot/ostree/repo", verbose=False)
print(result)
if not result.is_ok():
    print("possible corruption:", sorted(result.collisions))
```

`RepairResult.check()` prints warnings and raises `ValueError` when any image
is listed as likely corrupted; `to_dict()` and `from_dict()` use kebab-case
keys.

## Statistics

```python
from treetar.statistics import mean, std_deviation, median_absolute_deviation

assert mean([7, 4, 30, 14]) == 13.75
assert std_deviation([1, 4]) == 1.5
assert median_absolute_deviation([1, 4]) == (2.5, 1.5)  # input must be sorted
assert mean([]) is None
```

## Key files

```python
import configparser
from treetar.keyfile import optional_string, optional_bool

config = configparser.ConfigParser()
config.read_string("[foo]\nbaz = someval\nsomebool = false\n")
assert optional_string(config, "foo", "bar") is None
assert optional_string(config, "foo", "baz") == "someval"
assert optional_bool(config, "foo", "somebool") is False
```

`optional_bool` accepts only `true`, `false`, `1` and `0`, and raises
`ValueError` otherwise.

## What the package does not do

- It does not export a commit into a tar stream: there is no writer for the
  repository skeleton or for content objects, only the path layout helpers in
  `treetar.tarlayout`.
- It does not import tar streams into a repository; `treetar.tarpaths` and
  `treetar.tarxattrs` parse paths and track xattrs, but nothing writes objects.
- It cannot replace the detached metadata of an exported stream.
- It has no cancellation helpers for asyncio and no privilege-dropping
  subprocess helpers.
- It provides no command-line program; everything is a library call.