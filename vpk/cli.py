from __future__ import annotations

import os
import sys
import time
import argparse

from typing import List, Optional

from vpk.constants import DEFAULT_COPY_BLOCK
from vpk.directory import FileEntry, VPKSet
from vpk.errors import VPKError
from vpk.pathutil import safe_relpath


def _display(path: str) -> str:
    """Printable form of a packed path; undecodable bytes show as U+FFFD."""
    return path.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def _next_nonconflicting_path(path: str) -> str:
    """Return ``path`` or the first free ``name (n).ext`` sibling."""
    if not os.path.lexists(path):
        return path
    base_dir = os.path.dirname(path)
    root, ext = os.path.splitext(os.path.basename(path))
    i = 1
    while True:
        candidate = os.path.join(base_dir, f"{root} ({i}){ext}")
        if not os.path.lexists(candidate):
            return candidate
        i += 1


def _copy_entry(entry: FileEntry, out, block_size: int = DEFAULT_COPY_BLOCK) -> int:
    """Stream one entry into a writable binary file object.

    Args:
        entry: Entry to copy.
        out: Destination opened for binary writing.
        block_size: Bytes moved per read.

    Returns:
        Number of bytes written.
    """
    buf = bytearray(min(block_size, max(entry.length, 1)))
    written = 0
    with entry.open() as src:
        while True:
            n = src.readinto(buf)
            if not n:
                break
            out.write(memoryview(buf)[:n])
            written += n
    return written


def _select(vpk: VPKSet, paths: Optional[List[str]]) -> List[FileEntry]:
    entries = list(vpk.files().values())
    if not paths:
        return entries
    wanted = [p.replace("\\", "/").strip("/") for p in paths]
    return [e for e in entries if any(e.path == w or e.path.startswith(w + "/") for w in wanted)]


def cmd_list(archive: str, *, long: bool = False) -> bool:
    """List packed files.

    Args:
        archive: Path to the directory file, an archive of the set, or its base.
        long: Also print size, CRC and archive index.
    """
    vpk = VPKSet(archive)
    for path in sorted(vpk.files()):
        e = vpk.file(path)
        if long:
            print(f"{e.length}\t{e.crc:08x}\t{e.desc.archive_index}\t{_display(path)}")
        else:
            print(_display(path))
    return True


def cmd_info(archive: str) -> bool:
    """Show directory header and set summary."""
    vpk = VPKSet(archive)
    h = vpk.header()
    files = vpk.files()
    print(f"Directory: {vpk.directory_path}")
    print(f"  Version: {h.version}")
    print(f"  Tree size: {h.tree_size}")
    if h.version == 2:
        print(f"  File data section: {h.file_data_section_size}")
        print(f"  Archive MD5 section: {h.archive_md5_section_size}")
        print(f"  Other MD5 section: {h.other_md5_section_size}")
        print(f"  Signature section: {h.signature_section_size}")
    print(f"  Files: {len(files)}")
    print(f"    Total bytes: {sum(e.length for e in files.values())}")
    print(f"    Preload bytes: {sum(e.desc.preload_length for e in files.values())}")
    archives = vpk.archives()
    print(f"  Archives: {len(archives)}")
    for a in archives:
        print(f"    [{a.index}] {a.archive_path}")
    return True


def cmd_extract(archive: str, *, outdir: str = ".", paths: Optional[List[str]] = None, exists: str = "rename", quiet: bool = False) -> bool:
    """Extract (dump) packed files to a directory."""

    vpk = VPKSet(archive)
    entries = _select(vpk, paths)
    t0 = time.time()
    total_bytes = 0
    extracted = 0
    skipped = 0
    renamed = 0

    for e in entries:
        try:
            rel = safe_relpath(e.path)
        except ValueError as exc:
            print(f"Warning: skipping {_display(e.path)!r}: {exc}", file=sys.stderr)
            skipped += 1
            continue
        dst = os.path.join(outdir or ".", *rel.split("/"))
        if os.path.lexists(dst):
            if exists == "skip":
                if not quiet:
                    print(f"    skipping: {_display(e.path)} (exists)")
                skipped += 1
                continue
            if exists == "fail":
                raise FileExistsError(f"Destination exists: {dst}")
            if exists == "rename":
                dst = _next_nonconflicting_path(dst)
                renamed += 1
            elif exists == "overwrite":
                if os.path.isdir(dst) and not os.path.islink(dst):
                    raise RuntimeError(f"Cannot overwrite directory with file: {dst}")
                # Replace the link itself, never its target
                if os.path.islink(dst):
                    os.unlink(dst)
        os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
        with open(dst, "wb") as wf:
            total_bytes += _copy_entry(e, wf)
        extracted += 1
        if not quiet:
            print(f"  extracting: {_display(e.path)}")

    dt = max(time.time() - t0, 1e-6)
    mib = total_bytes / (1024 * 1024)
    print(f"Done: {extracted} files, {mib:.2f} MiB in {dt:.1f}s; skipped={skipped} renamed={renamed}")
    return True


def cmd_cat(archive: str, path: str) -> bool:
    """Write one packed file to stdout."""
    vpk = VPKSet(archive)
    entry = vpk.file(path)
    if entry is None:
        raise KeyError(path)
    out = sys.stdout.buffer
    _copy_entry(entry, out)
    out.flush()
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="vpk",
        description="Valve VPK archive tool (read-only)",
        epilog="ARCHIVE may be pak01_dir.vpk, pak01.vpk, or the base pak01.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")
    ap_list.add_argument("--long", "-l", action="store_true", help="Show size, CRC and archive index")

    ap_info = sub.add_parser("info", help="Show archive information")
    ap_info.add_argument("archive", help="Archive path")

    ap_extract = sub.add_parser("extract", help="Extract files")
    ap_extract.add_argument("archive", help="Archive path")
    ap_extract.add_argument("--outdir", default=".", help="Output directory")
    ap_extract.add_argument("paths", nargs="*", help="Specific packed paths or directory prefixes to extract")
    ap_extract.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")
    ap_extract.add_argument(
        "--exists",
        choices=["overwrite", "skip", "rename", "fail"],
        default="rename",
        help=(
            "What to do if a destination file exists: overwrite, skip, "
            "rename (append ' (n)' before extension), or fail (abort). Default: rename"
        ),
    )

    ap_cat = sub.add_parser("cat", help="Write one packed file to stdout")
    ap_cat.add_argument("archive", help="Archive path")
    ap_cat.add_argument("path", help="Packed path, e.g. materials/foo/bar.vmt")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "list":
            cmd_list(args.archive, long=args.long)
        elif args.cmd == "info":
            cmd_info(args.archive)
        elif args.cmd == "extract":
            cmd_extract(args.archive, outdir=args.outdir, paths=args.paths, exists=args.exists, quiet=args.quiet)
        elif args.cmd == "cat":
            cmd_cat(args.archive, args.path)
        else:
            raise RuntimeError("Unknown command")
    except KeyError as e:
        print(f"Error: no such file in archive: {_display(str(e.args[0]))}", file=sys.stderr)
        sys.exit(2)
    except (VPKError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
