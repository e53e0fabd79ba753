"""
Instruction rendering - Human-readable setup steps per verification type.
"""

from dataclasses import dataclass

from .ports import VerificationType

FALLBACK_INSTRUCTIONS = "Please follow the verification instructions provided."


@dataclass(frozen=True)
class InstructionRenderer:
    """Renders setup instructions for the developer console."""

    dns_label: str = "_rapid-verify"
    file_path: str = "/rapid-verify.txt"
    meta_name: str = "rapid-verify"

    def render(self, verification_type: VerificationType | str, token: str, domain: str) -> str:
        if verification_type == VerificationType.DNS_TXT:
            return (
                "Add the following TXT record to your domain's DNS settings:\n\n"
                f"Name: {self.dns_label}.{domain}\n"
                f"Value: {token}\n"
                "TTL: 300 (or default)\n\n"
                'After adding the record, click "Verify" to complete the process. '
                "DNS changes may take up to 24 hours to propagate."
            )

        if verification_type == VerificationType.META_TAG:
            return (
                "Add the following meta tag to the <head> section of your "
                f"website's homepage ({domain}):\n\n"
                f'<meta name="{self.meta_name}" content="{token}" />\n\n'
                'After adding the meta tag, click "Verify" to complete the process.'
            )

        if verification_type == VerificationType.FILE_UPLOAD:
            filename = self.file_path.lstrip("/")
            return (
                f'Create a text file named "{filename}" with the following content:\n\n'
                f"{token}\n\n"
                "Upload this file to the root directory of your website so it's "
                "accessible at:\n"
                f"https://{domain}{self.file_path}\n\n"
                'After uploading the file, click "Verify" to complete the process.'
            )

        if verification_type == VerificationType.MANUAL_REVIEW:
            return (
                "Your verification request has been submitted for manual review. "
                "Our team will review your domain ownership and contact you within "
                "2-3 business days.\n\n"
                f"Verification Token: {token}"
            )

        return FALLBACK_INSTRUCTIONS
