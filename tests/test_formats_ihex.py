import pytest

from unihex.base import FormatError
from unihex.base import RangeError
from unihex.formats.ihex import MAX_RECORD_STR_LEN
from unihex.formats.ihex import MIN_RECORD_STR_LEN
from unihex.formats.ihex import RECORD_DATA_MAX_BYTES
from unihex.formats.ihex import Record
from unihex.formats.ihex import RecordType
from unihex.formats.ihex import block_end_record
from unihex.formats.ihex import block_start_record
from unihex.formats.ihex import compute_checksum
from unihex.formats.ihex import convert_ext_seg_to_lin_address_record
from unihex.formats.ihex import convert_record_to
from unihex.formats.ihex import create_record
from unihex.formats.ihex import end_of_file_record
from unihex.formats.ihex import extended_linear_address_record
from unihex.formats.ihex import find_data_field_length
from unihex.formats.ihex import get_record_data
from unihex.formats.ihex import get_record_type
from unihex.formats.ihex import padded_data_record
from unihex.formats.ihex import parse_record
from unihex.formats.ihex import split_records
from unihex.formats.ihex import validate_record
from unihex.utils import unhexlify

DATA = RecordType.DATA
EOF = RecordType.END_OF_FILE
ESA = RecordType.EXTENDED_SEGMENT_ADDRESS
SSA = RecordType.START_SEGMENT_ADDRESS
ELA = RecordType.EXTENDED_LINEAR_ADDRESS
SLA = RecordType.START_LINEAR_ADDRESS

SAMPLE_DATA = bytes([0x64, 0x27, 0x00, 0x20, 0x03, 0x4B, 0x19, 0x60,
                     0x43, 0x68, 0x03, 0x49, 0x9B, 0x00, 0x5A, 0x50])


def _byte_sum(line):
    return sum(unhexlify(line[1:])) & 0xFF


class TestRecordType:

    def test_enum(self):
        assert RecordType.DATA == 0x00
        assert RecordType.END_OF_FILE == 0x01
        assert RecordType.EXTENDED_SEGMENT_ADDRESS == 0x02
        assert RecordType.START_SEGMENT_ADDRESS == 0x03
        assert RecordType.EXTENDED_LINEAR_ADDRESS == 0x04
        assert RecordType.START_LINEAR_ADDRESS == 0x05
        assert RecordType.BLOCK_START == 0x0A
        assert RecordType.BLOCK_END == 0x0B
        assert RecordType.PADDED_DATA == 0x0C
        assert RecordType.CUSTOM_DATA == 0x0D
        assert RecordType.OTHER_DATA == 0x0E
        assert len(RecordType) == 11

    def test_is_custom(self):
        custom = {RecordType.BLOCK_START, RecordType.BLOCK_END, RecordType.PADDED_DATA,
                  RecordType.CUSTOM_DATA, RecordType.OTHER_DATA}
        for tag in RecordType:
            assert tag.is_custom() is (tag in custom)

    def test_is_data(self):
        assert RecordType.DATA.is_data() is True
        assert RecordType.CUSTOM_DATA.is_data() is False
        assert RecordType.END_OF_FILE.is_data() is False

    def test_is_eof(self):
        assert RecordType.END_OF_FILE.is_eof() is True
        assert RecordType.DATA.is_eof() is False

    def test_is_extension(self):
        assert ESA.is_extension() is True
        assert ELA.is_extension() is True
        assert SSA.is_extension() is False
        assert SLA.is_extension() is False
        assert DATA.is_extension() is False

    def test_is_start(self):
        assert SSA.is_start() is True
        assert SLA.is_start() is True
        assert ESA.is_start() is False
        assert ELA.is_start() is False


def test_constants():
    assert RECORD_DATA_MAX_BYTES == 32
    assert MIN_RECORD_STR_LEN == 11
    assert MAX_RECORD_STR_LEN == 75


def test_compute_checksum():
    assert compute_checksum(b'') == 0
    assert compute_checksum(b'\x00\x00\x00\x01') == 0xFF
    assert compute_checksum(b'\x01') == 0xFF
    assert compute_checksum(b'\xFF\x01') == 0x00


class TestCreateRecord:

    def test_data(self):
        ans_out = create_record(0x4290, DATA, SAMPLE_DATA)
        assert ans_out == ':1042900064270020034B1960436803499B005A5070'

    def test_small(self):
        assert create_record(0xF870, DATA, b'\0\0\0\0') == ':04F870000000000094'
        ans_out = create_record(0xE7D4, DATA, b'\x0C\x1A\xFF\x7F\x01\x00\x00\x00')
        assert ans_out == ':08E7D4000C1AFF7F0100000098'

    def test_eof(self):
        assert create_record(0, EOF, b'') == ':00000001FF'

    def test_address_bounds(self):
        assert create_record(0x0000, DATA, b'\x01').startswith(':010000')
        assert create_record(0xFFFF, DATA, b'\x01').startswith(':01FFFF')

        for address in (-1, 0x10000):
            with pytest.raises(RangeError, match='address out of range'):
                create_record(address, DATA, b'\x01')

    def test_data_size_bounds(self):
        line = create_record(0, DATA, b'\xAA' * 32)
        assert len(line) == MAX_RECORD_STR_LEN

        with pytest.raises(RangeError, match=r'data has too many bytes \(33\)'):
            create_record(0, DATA, b'\xAA' * 33)

    def test_invalid_type(self):
        for tag in (0x06, 0x09, 0x0F, 0xFF, -1):
            with pytest.raises(FormatError, match='is not valid'):
                create_record(0, tag, b'')

    def test_invalid_type_is_value_error(self):
        with pytest.raises(ValueError):
            create_record(0, 0x10, b'')

    def test_checksum_sum(self):
        for tag in RecordType:
            for size in (0, 1, 2, 4, 16, 32):
                line = create_record(0x1234, tag, bytes(range(size)))
                assert _byte_sum(line) == 0

    def test_parse_round_trip(self):
        for address in (0x0000, 0x00FF, 0x8000, 0xFFFF):
            for tag in (DATA, RecordType.CUSTOM_DATA, RecordType.OTHER_DATA):
                for data in (b'', b'\x00', SAMPLE_DATA, b'\xFF' * 32):
                    record = parse_record(create_record(address, tag, data))
                    assert record.address == address
                    assert record.tag == tag
                    assert record.data == data
                    assert record.count == len(data)


class TestValidateRecord:

    def test_valid(self):
        validate_record(':00000001FF')
        validate_record(':' + '0' * (MAX_RECORD_STR_LEN - 1))

    def test_too_small(self):
        with pytest.raises(FormatError, match='Record length too small'):
            validate_record(':000000')

    def test_too_large(self):
        with pytest.raises(FormatError, match='Record length is too large'):
            validate_record(':' + '0' * MAX_RECORD_STR_LEN)

    def test_start_code(self):
        with pytest.raises(FormatError, match="does not start with a ':'"):
            validate_record('00000001FFF')


class TestGetRecordType:

    def test_standard(self):
        assert get_record_type(':1042900064270020034B1960436803499B005A5070') == DATA
        assert get_record_type(':00000001FF') == EOF
        assert get_record_type(':020000021000EC') == ESA
        assert get_record_type(':0400000300003800C1') == SSA
        assert get_record_type(':020000040001F9') == ELA
        assert get_record_type(':04000005000000CD2A') == SLA

    def test_custom(self):
        assert get_record_type(':0400000A9901C0DEBA') == RecordType.BLOCK_START
        assert get_record_type(':0000000BF5') == RecordType.BLOCK_END
        assert get_record_type(':0000000CF4') == RecordType.PADDED_DATA
        assert get_record_type(':105D300DE060E3802046FFF765FF0123A1881A4646') == RecordType.CUSTOM_DATA
        assert get_record_type(':0000000EF2') == RecordType.OTHER_DATA

    def test_invalid(self):
        with pytest.raises(FormatError, match='is not valid'):
            get_record_type(':0000000FF5')

        with pytest.raises(FormatError, match='is not valid'):
            get_record_type(':000000XYF5')

    def test_shape(self):
        with pytest.raises(FormatError, match='Record length too small'):
            get_record_type(':000001')


class TestGetRecordData:

    def test_data(self):
        line = ':1042900064270020034B1960436803499B005A5070'
        assert get_record_data(line) == SAMPLE_DATA

    def test_block_start(self):
        assert get_record_data(':0400000A9903C0DEB8') == b'\x99\x03\xC0\xDE'

    def test_empty(self):
        assert get_record_data(':00000001FF') == b''
        assert get_record_data(':00000001') == b''
        assert get_record_data('') == b''

    def test_invalid(self):
        with pytest.raises(FormatError, match='Could not parse Intel Hex record'):
            get_record_data(':0400000A99XXC0DEB8')

        with pytest.raises(FormatError, match='Could not parse Intel Hex record'):
            get_record_data(':0400000A99C0DEB')


class TestParseRecord:

    def test_data(self):
        record = parse_record(':10FFF0009B6D9847A06810F039FF0621A06810F0AB')
        assert record.count == 0x10
        assert record.address == 0xFFF0
        assert record.tag == DATA
        assert record.data == unhexlify('9B6D9847A06810F039FF0621A06810F0')
        assert record.checksum == 0xAB

    def test_eof(self):
        record = parse_record(':00000001FF')
        assert record.count == 0
        assert record.address == 0
        assert record.tag == EOF
        assert record.data == b''
        assert record.checksum == 0xFF

    def test_odd_length(self):
        with pytest.raises(FormatError, match='not divisible by 2'):
            parse_record(':04F87000000000094')

    def test_non_hex(self):
        with pytest.raises(FormatError, match='Could not parse Intel Hex record'):
            parse_record(':04F8700000000000XX')

    def test_larger_than_count(self):
        with pytest.raises(FormatError, match='larger than indicated by the byte count'):
            parse_record(':04F87000000000009400')

    def test_smaller_than_count(self):
        with pytest.raises(FormatError, match='smaller than indicated by the byte count'):
            parse_record(':05F870000000000094')

    def test_too_small(self):
        with pytest.raises(FormatError, match='Record length too small'):
            parse_record(':000000')

    def test_invalid_type(self):
        with pytest.raises(FormatError, match='is not valid'):
            parse_record(':0000000FF1')

    def test_checksum_not_verified(self):
        record = parse_record(':00000001AA')
        assert record.checksum == 0xAA
        with pytest.raises(FormatError, match='wrong checksum'):
            record.validate()


def test_end_of_file_record():
    assert end_of_file_record() == ':00000001FF'


class TestExtendedLinearAddressRecord:

    def test_values(self):
        assert extended_linear_address_record(0x00000) == ':020000040000FA'
        assert extended_linear_address_record(0x10000) == ':020000040001F9'
        assert extended_linear_address_record(0x30000) == ':020000040003F7'
        assert extended_linear_address_record(0x20000000) == ':020000042000DA'
        assert extended_linear_address_record(0xFFFFFFFF) == ':02000004FFFFFC'

    def test_only_upper_bits(self):
        for address in (0x00000, 0x00001, 0x08000, 0x0FFFF):
            assert extended_linear_address_record(address) == ':020000040000FA'

        for address in (0x10000, 0x10001, 0x18000, 0x1FFFF):
            assert extended_linear_address_record(address) == ':020000040001F9'

    def test_out_of_range(self):
        for address in (-1, 0x100000000):
            with pytest.raises(RangeError, match='Address record is out of range'):
                extended_linear_address_record(address)


class TestConvertExtSegToLinAddressRecord:

    def test_valid(self):
        assert convert_ext_seg_to_lin_address_record(':020000020000FC') == ':020000040000FA'
        assert convert_ext_seg_to_lin_address_record(':020000021000EC') == ':020000040001F9'
        assert convert_ext_seg_to_lin_address_record(':0200000270008C') == ':020000040007F3'

    def test_invalid(self):
        lines = [
            ':0200000270018C',     # segment not aligned
            ':0300000271008C',     # byte count mismatch
            ':030000027000FF8C',   # three data bytes
            ':020000040001F9',     # not a segment record
            ':0000',               # not a record
        ]
        for line in lines:
            with pytest.raises(FormatError, match='Invalid Extended Segment Address record'):
                convert_ext_seg_to_lin_address_record(line)


class TestBlockStartRecord:

    def test_values(self):
        assert block_start_record(0x9900) == ':0400000A9900C0DEBB'
        assert block_start_record(0x9901) == ':0400000A9901C0DEBA'
        assert block_start_record(0x9903) == ':0400000A9903C0DEB8'
        assert block_start_record(0x0000) == ':0400000A0000C0DE54'
        assert block_start_record(0xFFFF) == ':0400000AFFFFC0DE56'

    def test_out_of_range(self):
        for board_id in (-1, 0x10000):
            with pytest.raises(RangeError, match='Board ID out of range'):
                block_start_record(board_id)


class TestBlockEndRecord:

    def test_values(self):
        assert block_end_record(0) == ':0000000BF5'
        assert block_end_record(1) == ':0100000BFFF5'
        assert block_end_record(0x04) == ':0400000BFFFFFFFFF5'
        assert block_end_record(0x0C) == ':0C00000BFFFFFFFFFFFFFFFFFFFFFFFFF5'
        assert block_end_record(32) == ':2000000B' + 'FF' * 32 + 'F5'

    def test_cached_values_match(self):
        for pad_len in (0x04, 0x0C):
            assert block_end_record(pad_len) == create_record(0, RecordType.BLOCK_END, b'\xFF' * pad_len)

    def test_out_of_range(self):
        with pytest.raises(RangeError):
            block_end_record(-1)

        with pytest.raises(RangeError, match='too many bytes'):
            block_end_record(33)


class TestPaddedDataRecord:

    def test_values(self):
        assert padded_data_record(0) == ':0000000CF4'
        assert padded_data_record(1) == ':0100000CFFF4'
        assert padded_data_record(16) == ':1000000C' + 'FF' * 16 + 'F4'

    def test_out_of_range(self):
        with pytest.raises(RangeError):
            padded_data_record(-1)

        with pytest.raises(RangeError, match='too many bytes'):
            padded_data_record(33)


class TestConvertRecordTo:

    def test_custom_data(self):
        line = ':105D3000E060E3802046FFF765FF0123A1881A4653'
        ans_out = convert_record_to(line, RecordType.CUSTOM_DATA)
        assert ans_out == ':105D300DE060E3802046FFF765FF0123A1881A4646'

    def test_back_to_data(self):
        line = ':105D300DE060E3802046FFF765FF0123A1881A4646'
        ans_out = convert_record_to(line, DATA)
        assert ans_out == ':105D3000E060E3802046FFF765FF0123A1881A4653'

    def test_keeps_fields(self):
        line = create_record(0xABCD, DATA, SAMPLE_DATA)
        ans_out = parse_record(convert_record_to(line, RecordType.OTHER_DATA))
        assert ans_out.address == 0xABCD
        assert ans_out.tag == RecordType.OTHER_DATA
        assert ans_out.data == SAMPLE_DATA
        assert _byte_sum(str(ans_out)) == 0


class TestSplitRecords:

    def test_lf(self):
        assert split_records(':020000040000FA\n:00000001FF\n') == [':020000040000FA', ':00000001FF']

    def test_crlf(self):
        assert split_records(':020000040000FA\r\n:00000001FF\r\n') == [':020000040000FA', ':00000001FF']

    def test_blank_lines(self):
        assert split_records('\n\n:00000001FF\n\r\n\n') == [':00000001FF']

    def test_empty(self):
        assert split_records('') == []
        assert split_records('\n\r\n') == []


class TestFindDataFieldLength:

    def test_default(self):
        assert find_data_field_length([]) == 16
        assert find_data_field_length([':00000001FF']) == 16
        assert find_data_field_length([create_record(0, DATA, b'\0' * 8)]) == 16

    def test_longer(self):
        lines = [create_record(0, DATA, b'\0' * 16)] * 3
        lines.append(create_record(0, DATA, b'\0' * 20))
        assert find_data_field_length(lines) == 20

    def test_maximum(self):
        assert find_data_field_length([create_record(0, DATA, b'\0' * 32)]) == 32

    def test_too_large(self):
        lines = [':' + '00' * 40]
        with pytest.raises(RangeError, match='data size is too large'):
            find_data_field_length(lines)

    def test_early_exit(self):
        lines = [create_record(0, DATA, b'\0' * 16)] * 12
        lines.append(create_record(0, DATA, b'\0' * 32))
        assert find_data_field_length(lines) == 16

    def test_no_early_exit(self):
        lines = [create_record(0, DATA, b'\0' * 16)] * 10
        lines.append(create_record(0, DATA, b'\0' * 32))
        assert find_data_field_length(lines) == 32


class TestRecord:

    def test___init__(self):
        record = Record(DATA, address=0x1234, data=b'abc')
        assert record.tag == DATA
        assert record.address == 0x1234
        assert record.data == b'abc'
        assert record.count == 3
        assert record.checksum == 0x91

    def test___init___no_validate(self):
        record = Record(DATA, address=0x10000, count=None, checksum=None, validate=False)
        assert record.count is None
        assert record.checksum is None

    def test___init___validate(self):
        with pytest.raises(RangeError, match='address overflow'):
            Record(DATA, address=0x10000)

    def test___eq__(self):
        record1 = Record.create_data(0x1234, b'abc')
        record2 = Record.parse(':0312340061626391')
        assert record1 == record2
        assert not record1 != record2
        assert record1 != Record.create_data(0x1234, b'abd')
        assert record1 != ':0312340061626391'

    def test___repr__(self):
        record = Record.create_end_of_file()
        text = repr(record)
        assert text.startswith('<Record ')
        assert 'address:=0x0000' in text
        assert 'checksum:=255' in text

    def test___str__(self):
        assert str(Record.create_end_of_file()) == ':00000001FF'
        assert str(Record.create_data(0x4290, SAMPLE_DATA)) == ':1042900064270020034B1960436803499B005A5070'

    def test_compute_checksum(self):
        record = Record.create_data(0xF870, b'\0\0\0\0')
        assert record.compute_checksum() == 0x94

    def test_compute_count(self):
        assert Record.create_data(0, b'\0' * 7).compute_count() == 7

    def test_create_data(self):
        record = Record.create_data(0x0000, b'')
        assert str(record) == ':0000000000'

        with pytest.raises(RangeError, match='address overflow'):
            Record.create_data(0x10000, b'')

        with pytest.raises(RangeError, match='data size overflow'):
            Record.create_data(0, b'\0' * 33)

    def test_create_extended_linear_address(self):
        assert str(Record.create_extended_linear_address(0x0001)) == ':020000040001F9'
        assert str(Record.create_extended_linear_address(0x1234)) == ':020000041234B4'

        with pytest.raises(RangeError):
            Record.create_extended_linear_address(0x10000)

    def test_create_extended_segment_address(self):
        assert str(Record.create_extended_segment_address(0x1000)) == ':020000021000EC'

        with pytest.raises(RangeError):
            Record.create_extended_segment_address(-1)

    def test_create_start_linear_address(self):
        assert str(Record.create_start_linear_address(0x000000CD)) == ':04000005000000CD2A'

        with pytest.raises(RangeError):
            Record.create_start_linear_address(0x100000000)

    def test_create_start_segment_address(self):
        assert str(Record.create_start_segment_address(0x00003800)) == ':0400000300003800C1'

        with pytest.raises(RangeError):
            Record.create_start_segment_address(-1)

    def test_create_block_start(self):
        record = Record.create_block_start(0x9901)
        assert record.tag == RecordType.BLOCK_START
        assert record.data == b'\x99\x01\xC0\xDE'
        assert str(record) == ':0400000A9901C0DEBA'

    def test_data_to_int(self):
        record = Record.create_extended_linear_address(0xABCD)
        assert record.data_to_int() == 0xABCD
        assert record.data_to_int(byteorder='little') == 0xCDAB

    def test_parse(self):
        record = Record.parse(':00000001FF\r\n')
        assert record == Record.create_end_of_file()

    def test_to_tokens(self):
        tokens = Record.create_data(0x1234, b'abc').to_tokens()
        assert list(tokens.keys()) == ['begin', 'count', 'address', 'tag', 'data', 'checksum', 'end']
        assert ''.join(tokens.values()) == ':0312340061626391\n'
        assert Record.create_end_of_file().to_tokens(end='')['end'] == ''

    def test_update_checksum(self):
        record = Record.create_end_of_file()
        record.checksum = None
        assert record.update_checksum() is record
        assert record.checksum == 0xFF

    def test_update_count(self):
        record = Record.create_data(0, b'abc')
        record.data = b'abcd'
        assert record.update_count() is record
        assert record.count == 4

    def test_validate(self):
        record = Record.create_data(0, b'abc')
        assert record.validate() is record

        record.count = 5
        with pytest.raises(FormatError, match='wrong count'):
            record.validate()
        record.validate(count=False, checksum=False)

        record.count = 0x100
        with pytest.raises(RangeError, match='count overflow'):
            record.validate()

        record.update_count()
        record.checksum = 0x100
        with pytest.raises(RangeError, match='checksum overflow'):
            record.validate()

    def test_validate_tag_sizes(self):
        with pytest.raises(FormatError, match='unexpected data'):
            Record(EOF, data=b'\0')

        with pytest.raises(FormatError, match='extension data size overflow'):
            Record(ELA, data=b'\0')

        with pytest.raises(FormatError, match='start address data size overflow'):
            Record(SLA, data=b'\0\0')

        with pytest.raises(FormatError, match='block start data size overflow'):
            Record(RecordType.BLOCK_START, data=b'\x99\x01\xC0')
