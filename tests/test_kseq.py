import gzip
import io

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from swkit.kseq import SeqReader, SeqRecord, TruncatedQualityError, read_sequences


class _Trickle(io.RawIOBase):
    """A stream handing out one byte per read call."""

    def __init__(self, data: bytes) -> None:
        self._buf = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def read(self, n=-1):
        return self._buf.read(1)


FASTA = b">r1 desc here\nACGT\nAC\n>r2\nGG\n"
FASTQ = b"@q1\nACGT\n+\nIIII\n@q2 c\nA\n+q2\n#\n"


def test_fasta_multiline():
    records = list(SeqReader(io.BytesIO(FASTA)))
    assert records == [
        SeqRecord("r1", "desc here", "ACGTAC", None),
        SeqRecord("r2", "", "GG", None),
    ]


def test_fastq_records():
    records = list(SeqReader(io.BytesIO(FASTQ)))
    assert records == [
        SeqRecord("q1", "", "ACGT", "IIII"),
        SeqRecord("q2", "c", "A", "#"),
    ]


def test_multiline_quality():
    data = b"@q\nACGT\nAC\n+\nIII\nIII\n"
    (record,) = SeqReader(io.BytesIO(data))
    assert record.seq == "ACGTAC"
    assert record.qual == "IIIIII"


def test_crlf_is_stripped():
    (record,) = SeqReader(io.BytesIO(b">x\r\nAC\r\nGT\r\n"))
    assert record == SeqRecord("x", "", "ACGT", None)


def test_truncated_quality_raises():
    reader = SeqReader(io.BytesIO(b"@q\nACGT\n+\nII\n"))
    with pytest.raises(TruncatedQualityError):
        reader.read()


def test_missing_quality_line_raises():
    reader = SeqReader(io.BytesIO(b"@q\nACGT\n+"))
    with pytest.raises(TruncatedQualityError):
        reader.read()


def test_empty_input():
    reader = SeqReader(io.BytesIO(b""))
    assert reader.read() is None
    assert list(reader) == []


def test_leading_junk_skipped():
    records = list(SeqReader(io.BytesIO(b"junk\n>r\nAC\n")))
    assert [r.name for r in records] == ["r"]
    assert records[0].seq == "AC"


def test_empty_sequence_record():
    records = list(SeqReader(io.BytesIO(b">a\n>b\nAC\n")))
    assert [(r.name, r.seq) for r in records] == [("a", ""), ("b", "AC")]


def test_one_byte_reads_match_buffered():
    expected = list(SeqReader(io.BytesIO(FASTA + FASTQ)))
    assert list(SeqReader(_Trickle(FASTA + FASTQ))) == expected


def test_text_stream_accepted():
    records = list(SeqReader(io.StringIO(FASTA.decode())))
    assert records == list(SeqReader(io.BytesIO(FASTA)))


def test_rewind_rereads():
    reader = SeqReader(io.BytesIO(FASTQ))
    first = list(reader)
    reader.rewind()
    assert list(reader) == first
    assert len(first) == 2


def test_read_sequences_plain_and_gzip(tmp_path):
    plain = tmp_path / "reads.fa"
    plain.write_bytes(FASTA)
    packed = tmp_path / "reads.fa.gz"
    with gzip.open(packed, "wb") as fh:
        fh.write(FASTA)
    expected = list(SeqReader(io.BytesIO(FASTA)))
    assert list(read_sequences(str(plain))) == expected
    assert list(read_sequences(str(packed))) == expected


_names = st.text(alphabet="abcXYZ019_", min_size=1, max_size=8)
_comments = st.text(alphabet="abc xyz=", max_size=10).filter(lambda s: not s.startswith(" "))


@settings(max_examples=60, deadline=None)
@given(
    st.lists(
        st.tuples(_names, _comments, st.text(alphabet="ACGTN", min_size=1, max_size=40)),
        max_size=6,
    ),
    st.booleans(),
)
def test_fastq_round_trip(items, fastq):
    out = []
    expected = []
    for name, comment, seq in items:
        header = name + (" " + comment if comment else "")
        if fastq:
            qual = "I" * len(seq)
            out.append(f"@{header}\n{seq}\n+\n{qual}\n")
            expected.append(SeqRecord(name, comment, seq, qual))
        else:
            out.append(f">{header}\n{seq}\n")
            expected.append(SeqRecord(name, comment, seq, None))
    data = "".join(out).encode()
    assert list(SeqReader(io.BytesIO(data))) == expected
    assert list(SeqReader(_Trickle(data))) == expected