"""
Converter for human-readable validation reports.
"""
import json
from jinja2 import Template
from ..MODELS.compose_file import ComposeFile
from ..MODELS.validation_report import ValidationReport

REPORT_TEMPLATE = """\
{{ source }} (format {{ config.format }}{% if config.version %}, version {{ config.version }}{% endif %})

Services:
{% for name, svc in config.services.items() %}
  {{ name }}: {{ svc.image or ('build ' ~ svc.build_context) }}
{{- ' links=' ~ (svc.links | join(',')) if svc.links }}
{{- ' volumes=' ~ (svc.named_volumes | join(',')) if svc.named_volumes }}
{% endfor %}
{% if config.volumes %}
Volumes:
{% for name in config.volumes %}
  {{ name }}: {{ config.mounts_of(name) | join(', ') or '(unused)' }}
{% endfor %}
{% endif %}
{% if report.issues %}
Issues:
{% for issue in report.issues %}
  {{ issue.severity.value | upper }} [{{ issue.code }}] {{ issue.path }}: {{ issue.message }}
{% endfor %}
{% endif %}
{{ report.errors | length }} error(s), {{ report.warnings | length }} warning(s)
"""


class ReportRenderer:
    """
    Renders a ValidationReport as text or JSON.
    """

    def __init__(self):
        self.template = Template(REPORT_TEMPLATE, trim_blocks=True)

    def render(self, report: ValidationReport, config: ComposeFile) -> str:
        """
        Renders a text summary of the stack and its issues.

        :param report: The validation result.
        :param config: The validated compose file.
        :return: The rendered text.
        """
        return self.template.render(
            source=config.source_path or "<string>",
            config=config,
            report=report,
        )

    def render_json(self, report: ValidationReport, config: ComposeFile) -> str:
        payload = {
            "source": config.source_path,
            "ok": report.ok,
            "issues": [issue.model_dump(mode="json") for issue in report.issues],
        }
        return json.dumps(payload, indent=2)
