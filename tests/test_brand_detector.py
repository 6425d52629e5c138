import unittest

from scubacheck.brand_detector import detect_brand_impersonation


class TestBrandDetector(unittest.TestCase):
    def test_logo_image(self):
        html = '<p>Hello</p><img src="https://cdn.example.com/paypal-logo.png" alt="PayPal" width="120" height="60">'
        matches = detect_brand_impersonation(html)
        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0].brand_name, "PayPal")
        self.assertEqual(matches[0].confidence, 0.8)
        self.assertEqual(matches[0].location, "https://cdn.example.com/paypal-logo.png")
        self.assertIn("Image dimensions match typical logo proportions", matches[0].reasons)

    def test_name_alone_is_below_threshold(self):
        html = '<img src="https://cdn.example.com/banner.png" alt="Google">'
        self.assertEqual(detect_brand_impersonation(html), [])

    def test_inline_and_relative_images_are_ignored(self):
        html = (
            '<img src="data:image/png;base64,AAAA" alt="PayPal" class="paypal-logo">'
            '<img src="/img/paypal-logo.png" alt="PayPal">'
        )
        self.assertEqual(detect_brand_impersonation(html), [])

    def test_confidence_is_capped(self):
        html = (
            '<img src="https://cdn.example.com/ups-shield.png" alt="UPS brown shield" '
            'class="ups-logo" width="64" height="64">'
        )
        ups = [m for m in detect_brand_impersonation(html) if m.brand_name == "UPS"]
        self.assertEqual(len(ups), 1)
        self.assertEqual(ups[0].confidence, 1.0)

    def test_plain_text(self):
        self.assertEqual(detect_brand_impersonation("No images here"), [])
        self.assertEqual(detect_brand_impersonation(""), [])


if __name__ == "__main__":
    unittest.main()
