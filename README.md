# swkit

`swkit` is a library of building blocks for sequence alignment work. It has no dependencies outside the standard library.

- **Smith-Waterman local alignment** (`swkit.ksw_align`). `align` and `align2` use affine gap costs. They report the best score and its end positions in an `AlignResult`. They can also report the second-best score (flag `XSUBO`) and the start positions (flag `XSTART`). Scores are 16-bit by default, or 8-bit with `XBYTE`, where overflow is reported as 255. A `QueryProfile` can be built once and reused to align one query against many targets.
- **Seed extension and banded global alignment** (`swkit.ksw_extend`).
  - `extend` and `extend2` extend an alignment from a seed score, with a band width and z-dropping. They return an `ExtendResult`.
  - `global_align` and `global_align2` align end to end within a band. They return a `GlobalResult`. Its optional CIGAR is a list of `(op, length)` pairs, and `cigar_string` gives it in text form.
- **FASTA/FASTQ reading** (`swkit.kseq`).
  - `SeqReader` reads mixed FASTA and FASTQ records from a stream and yields `SeqRecord` objects.
  - It raises `TruncatedQualityError` when a quality string is missing or has the wrong length.
  - `read_sequences` opens plain or gzip-compressed files, or `-` for standard input.
- **Run-length encoded symbol storage** (`swkit.rle`, `swkit.rope`). Both work over the six symbols `$ACGTN`.
  - `RleBlock` supports run insertion, splitting, counting and rank queries.
  - `Rope` is a B+ tree of such blocks. It has `insert_run`, `rank` and `rank2`, plus `dump` and `restore` for a binary form.
- **Helpers**:
  - `swkit.kbtree.BTree`: a B-tree with `put`, `get`, `delete`, `interval` and `first`.
  - `swkit.ksort`: `mergesort`, `introsort`, `combsort`, heap routines and `ksmall` selection, each taking a less-than function.
  - `swkit.kthread`: `parallel_for`, a work-stealing loop over threads, and `pipeline`, an ordered multi-step pipeline.
  - `swkit.utils`:
    - `xopen` and `xzopen` raise `FatalError` when a file cannot be opened.
    - `flush_and_sync` flushes a stream and syncs it to disk.
    - `cputime`, `realtime` and `peakrss` report time and memory use.
    - `hash_64` is an invertible 64-bit hash.

## Installation

```
pip install .
```

To run the tests, install with the `test` extra:

```
pip install ".[test]"
pytest
```

## Library use

```python
from swkit.ksw_align import XSTART, align
from swkit.ksw_extend import global_align

# 5x5 scoring matrix over A, C, G, T, N: match 1, mismatch -3, N scores 0
mat = []
for i in range(5):
    for j in range(5):
        mat.append(0 if 4 in (i, j) else (1 if i == j else -3))

query = [0, 1, 2, 3, 0, 1]
target = [3, 3, 0, 1, 2, 3, 0, 1, 2]

result = align(query, target, 5, mat, 5, 2, XSTART, None)
print(result.score, result.qb, result.qe, result.tb, result.te)

glob = global_align(query, target, 5, mat, 5, 2, 10, True)
print(glob.score, glob.cigar_string)
```

Reading sequences:

```python
from swkit.kseq import read_sequences

for record in read_sequences("reads.fq.gz"):
    print(record.name, len(record.seq))
```

Building a rope and querying ranks:

```python
from swkit.rope import Rope

rope = Rope()
rope.insert_run(0, 1, 3)   # three A's at the start
rope.insert_run(3, 2, 2)   # then two C's
print(str(rope))           # AAACC
print(rope.rank(4))        # counts of each symbol among the first 4
```

## What it does not do

`swkit` is a library only. It installs no command-line program. It has no command for merging overlapping read pairs. It does not build genome indexes or map reads. The alignment, rope and I/O pieces are provided for use from Python code.