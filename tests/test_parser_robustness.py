import unittest
from pathlib import Path
import tempfile
import shutil

from scubacheck.analyzer import analyze_file
from scubacheck.eml_parser import (
    extract_attachments,
    extract_header_fields,
    extract_received_values,
    read_message,
    split_message,
)

MULTIPART = (
    "From: Alice <alice@example.com>\r\n"
    "To: bob@example.com\r\n"
    "Subject: Quarterly notes\r\n"
    "Date: Tue, 01 Oct 2024 10:10:00 +0000\r\n"
    "MIME-Version: 1.0\r\n"
    "Content-Type: multipart/mixed;\r\n"
    "\tboundary=\"BOUNDARY42\"\r\n"
    "\r\n"
    "--BOUNDARY42\r\n"
    "Content-Type: text/plain; charset=utf-8\r\n"
    "\r\n"
    "See attached.\r\n"
    "--BOUNDARY42\r\n"
    "Content-Type: application/pdf; name=\"notes.pdf\"\r\n"
    "Content-Disposition: attachment; filename=\"notes.pdf\"\r\n"
    "Content-Transfer-Encoding: base64\r\n"
    "\r\n"
    "JVBERi0x\r\n"
    "LjQK\r\n"
    "--BOUNDARY42\r\n"
    "Content-Type: application/octet-stream\r\n"
    "Content-Disposition: attachment\r\n"
    "\r\n"
    "AAAA\r\n"
    "--BOUNDARY42--\r\n"
)


class TestSplitMessage(unittest.TestCase):
    def test_splits_on_first_blank_line(self):
        headers, body = split_message("Subject: Hi\r\nFrom: a@b.com\r\n\r\nBody line\r\n\r\nMore")
        self.assertEqual(headers, "Subject: Hi\r\nFrom: a@b.com")
        self.assertEqual(body, "Body line\r\n\r\nMore")

    def test_no_blank_line_means_headers_only(self):
        headers, body = split_message("Subject: Hi\nFrom: a@b.com")
        self.assertEqual(headers, "Subject: Hi\nFrom: a@b.com")
        self.assertEqual(body, "")

    def test_empty_input(self):
        self.assertEqual(split_message(""), ("", ""))
        self.assertEqual(split_message(None), ("", ""))


class TestHeaderFields(unittest.TestCase):
    def test_simple_fields(self):
        headers, _ = split_message(MULTIPART)
        fields = extract_header_fields(headers)
        self.assertEqual(fields.subject, "Quarterly notes")
        self.assertEqual(fields.from_, "Alice <alice@example.com>")
        self.assertEqual(fields.to, "bob@example.com")
        self.assertEqual(fields.date, "Tue, 01 Oct 2024 10:10:00 +0000")
        self.assertEqual(fields.received, headers)

    def test_defaults_when_absent(self):
        fields = extract_header_fields("X-Mailer: something")
        self.assertEqual(fields.subject, "No Subject")
        self.assertEqual(fields.from_, "Unknown Sender")
        self.assertEqual(fields.to, "Unknown Recipient")
        self.assertEqual(fields.date, "Unknown Date")
        self.assertEqual(fields.received_values, [])

    def test_received_values_are_unfolded_in_order(self):
        block = (
            "Received: from a.example by b.example;\n"
            "\tTue, 01 Oct 2024 10:00:00 +0000\n"
            "Subject: x\n"
            "Received: from c.example by a.example; Tue, 01 Oct 2024 09:59:00 +0000"
        )
        self.assertEqual(extract_received_values(block), [
            "from a.example by b.example; Tue, 01 Oct 2024 10:00:00 +0000",
            "from c.example by a.example; Tue, 01 Oct 2024 09:59:00 +0000",
        ])

    def test_missing_separator_giant_header(self):
        giant_header_val = "x" * 3000
        fields = extract_header_fields("Subject: Broken\r\nX-Giant: " + giant_header_val)
        self.assertEqual(fields.subject, "Broken")


class TestAttachments(unittest.TestCase):
    def test_boundary_attachment_with_decoded_size(self):
        attachments = extract_attachments(MULTIPART)
        # the part without a filename is not an attachment
        self.assertEqual(len(attachments), 1)
        att = attachments[0]
        self.assertEqual(att.filename, "notes.pdf")
        self.assertEqual(att.content_type, "application/pdf")
        self.assertEqual(att.size, 9)  # floor(12 * 3 / 4)
        self.assertEqual(att.content, b"%PDF-1.4\n")

    def test_unquoted_boundary(self):
        raw = (
            "Subject: x\n"
            "Content-Type: multipart/mixed; boundary=abc123\n"
            "\n"
            "--abc123\n"
            "Content-Type: application/x-msdownload\n"
            "Content-Disposition: attachment; filename=\"invoice.exe\"\n"
            "\n"
            "TVqQAAMAAAAEAAAA\n"
            "--abc123--\n"
        )
        attachments = extract_attachments(raw)
        self.assertEqual([a.filename for a in attachments], ["invoice.exe"])
        self.assertEqual(attachments[0].size, 12)

    def test_fallback_scan_without_boundary(self):
        raw = (
            "Subject: forwarded\n"
            "\n"
            "Content-Type: application/zip\n"
            "Content-Disposition: attachment; filename=\"payload.zip\"\n"
            "\n"
            "UEsDBBQ=\n"
        )
        attachments = extract_attachments(raw)
        self.assertEqual(len(attachments), 1)
        self.assertEqual(attachments[0].filename, "payload.zip")
        self.assertEqual(attachments[0].content_type, "application/zip")
        self.assertEqual(attachments[0].size, 0)
        self.assertIsNone(attachments[0].content)

    def test_no_attachments(self):
        self.assertEqual(extract_attachments("Subject: hi\n\nJust text."), [])

    def test_invalid_base64_keeps_size(self):
        raw = (
            "Content-Type: multipart/mixed; boundary=\"B\"\n"
            "\n"
            "--B\n"
            "Content-Disposition: attachment; filename=\"notes.txt\"\n"
            "\n"
            "abcde\n"
            "--B--\n"
        )
        att = extract_attachments(raw)[0]
        self.assertEqual(att.size, 3)
        self.assertIsNone(att.content)


class TestReadMessage(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def _create_eml(self, name, content):
        p = Path(self.test_dir) / name
        p.write_bytes(content)
        return p

    def test_reads_latin1_fallback(self):
        p = self._create_eml("latin.eml", b"Subject: Caf\xe9\r\n\r\nBody")
        self.assertIn("Caf\xe9", read_message(p))

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            read_message(Path(self.test_dir) / "nope.eml")

    def test_unsupported_extension(self):
        p = self._create_eml("report.pdf", b"%PDF-1.4")
        with self.assertRaises(ValueError):
            read_message(p)

    def test_analyze_file(self):
        p = self._create_eml("multipart.eml", MULTIPART.encode())
        result = analyze_file(p)
        self.assertEqual(result.headers.subject, "Quarterly notes")
        self.assertEqual(result.attachments[0].filename, "notes.pdf")
        self.assertEqual(result.security_score.attachments, 70)


if __name__ == "__main__":
    unittest.main()
