"""Built-in document templates shipped with the application (read-only)."""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class DocumentTemplate:
    """Named HTML template."""
    name: str
    title: str
    html: str
    builtin: bool = False

    def to_dict(self, include_html: bool = True):
        data = {'name': self.name, 'title': self.title, 'builtin': self.builtin}
        if include_html:
            data['html'] = self.html
        return data


_BASE_STYLE = """
  * { box-sizing: border-box; }
  body { margin: 0; font-family: 'Helvetica Neue', Arial, sans-serif; color: #1f2937; font-size: 13px; }
  .page { width: 794px; min-height: 1123px; padding: 48px 56px; position: relative; }
  .page-break { page-break-after: always; }
  h1, h2, h3 { margin: 0 0 8px 0; }
  table { width: 100%; border-collapse: collapse; }
  th, td { padding: 8px 10px; border-bottom: 1px solid #e5e7eb; text-align: left; vertical-align: top; }
  .text-right { text-align: right; }
  .muted { color: #6b7280; }
  .accent { color: {{primaryColor}}; }
  .logo { max-height: 64px; max-width: 220px; }
"""


STANDARD_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Quote {{quoteNumber}}</title>
<style>""" + _BASE_STYLE + """
  .cover { display: flex; flex-direction: column; justify-content: space-between;
           background: {{primaryColor}}; color: #ffffff; }
  .cover h1 { font-size: 40px; margin-top: 280px; }
  .cover .meta { font-size: 15px; line-height: 1.8; }
  .header { display: flex; justify-content: space-between; align-items: flex-start;
            border-bottom: 3px solid {{primaryColor}}; padding-bottom: 16px; margin-bottom: 24px; }
  .columns { display: flex; gap: 32px; margin-bottom: 24px; }
  .columns > div { flex: 1; }
  .summary th { background: {{primaryColor}}; color: #ffffff; }
  .totals td { font-weight: bold; border-top: 2px solid {{primaryColor}}; }
  .notes { white-space: pre-line; background: #f9fafb; padding: 12px; border-radius: 4px; }
  .terms { font-size: 11px; color: #6b7280; margin-top: 32px; }
  .footer { position: absolute; bottom: 32px; left: 56px; right: 56px; font-size: 11px;
            color: #6b7280; border-top: 1px solid #e5e7eb; padding-top: 8px; }
</style>
</head>
<body>
<div class="page cover page-break">
  <div><img class="logo" src="{{companyLogo}}" alt="{{companyName}}"></div>
  <div>
    <h1>Connectivity Proposal</h1>
    <div class="meta">
      Prepared for <strong>{{customerName}}</strong><br>
      Quote {{quoteNumber}}<br>
      {{quoteDate}}
    </div>
  </div>
  <div class="meta">{{companyName}}<br>{{companyAddress}}</div>
</div>

<div class="page">
  <div class="header">
    <div>
      <img class="logo" src="{{companyLogo}}" alt="{{companyName}}">
      <div class="muted">{{companyAddress}}</div>
      <div class="muted">{{companyContact}} | {{companyEmail}}</div>
    </div>
    <div class="text-right">
      <h2 class="accent">QUOTE</h2>
      <div><strong>No:</strong> {{quoteNumber}}</div>
      <div><strong>Date:</strong> {{quoteDate}}</div>
      <div><strong>Valid until:</strong> {{expirationDate}}</div>
      <div><strong>Status:</strong> {{quoteStatus}}</div>
    </div>
  </div>

  <div class="columns">
    <div>
      <h3 class="accent">Customer</h3>
      <div><strong>{{customerName}}</strong></div>
      <div>Attn: {{contactName}}</div>
      <div>{{customerAddress}}</div>
      <div>{{customerCity}}, {{customerCountry}}</div>
      <div>{{customerEmail}}</div>
      <div>{{customerPhone}}</div>
    </div>
    <div>
      <h3 class="accent">Service</h3>
      <div><strong>{{serviceName}}</strong></div>
      <div>Bandwidth: {{bandwidth}}</div>
      <div>Contract term: {{contractTerm}} months</div>
    </div>
  </div>

  <table class="summary">
    <thead>
      <tr><th>Item</th><th class="text-right">One-time</th><th class="text-right">Monthly</th></tr>
    </thead>
    <tbody>
      <tr><td>{{serviceName}} setup</td><td class="text-right">MUR {{serviceSetupFee}}</td><td class="text-right">-</td></tr>
      <tr><td>{{bandwidth}} bandwidth</td><td class="text-right">-</td><td class="text-right">MUR {{bandwidthPrice}}</td></tr>
      {{featuresRows}}
      <tr class="totals"><td>Total</td><td class="text-right">MUR {{totalOneTime}}</td><td class="text-right">MUR {{totalMonthly}}</td></tr>
    </tbody>
  </table>

  <h3 class="accent" style="margin-top: 24px;">Notes</h3>
  <div class="notes">{{notes}}</div>

  <div class="terms">
    Prices exclude VAT. Monthly charges are billed in advance from the service activation date
    for the full contract term. This quote is valid until {{expirationDate}}.
  </div>

  <div class="footer">{{companyName}} | {{companyContact}} | {{companyEmail}}</div>
</div>
</body>
</html>
"""


SERVICE_ORDER_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Service Order {{quoteNumber}}</title>
<style>""" + _BASE_STYLE + """
  .order-header { display: flex; justify-content: space-between; align-items: center;
                  background: {{primaryColor}}; color: #ffffff; padding: 16px 20px; margin-bottom: 24px; }
  .order-header .doc { font-size: 12px; text-align: right; }
  .section-title { background: #f3f4f6; font-weight: bold; padding: 6px 10px;
                   border-left: 4px solid {{primaryColor}}; margin: 20px 0 8px 0; }
  .details td:first-child { width: 35%; color: #6b7280; }
  .charges th { background: #f3f4f6; }
  .terms { font-size: 11px; line-height: 1.6; }
  .terms li { margin-bottom: 6px; }
  .signatures { display: flex; gap: 48px; margin-top: 48px; }
  .signatures > div { flex: 1; }
  .signature-line { border-bottom: 1px solid #1f2937; height: 48px; margin-bottom: 6px; }
</style>
</head>
<body>
<div class="page page-break">
  <div class="order-header">
    <img class="logo" src="{{companyLogo}}" alt="{{companyName}}">
    <div class="doc">
      <div><strong>SERVICE ORDER FORM</strong></div>
      <div>Document Number: {{quoteNumber}}</div>
      <div>Date: {{quoteDate}}</div>
    </div>
  </div>

  <div class="section-title">Customer Details</div>
  <table class="details">
    <tr><td>Company Name</td><td>{{customerName}}</td></tr>
    <tr><td>Contact Person</td><td>{{contactName}}</td></tr>
    <tr><td>Email</td><td>{{customerEmail}}</td></tr>
    <tr><td>Phone</td><td>{{customerPhone}}</td></tr>
    <tr><td>Address</td><td>{{customerAddress}}</td></tr>
    <tr><td>City / Country</td><td>{{customerCity}} / {{customerCountry}}</td></tr>
  </table>

  <div class="section-title">Service Summary</div>
  <table class="details">
    <tr><td>Service</td><td>{{serviceName}}</td></tr>
    <tr><td>Bandwidth</td><td>{{bandwidth}}</td></tr>
    <tr><td>Contract Term</td><td>{{contractTerm}} months</td></tr>
  </table>

  <table class="charges" style="margin-top: 12px;">
    <thead>
      <tr><th>Description</th><th class="text-right">Installation Charge (MUR)</th><th class="text-right">Monthly Recurring Charge (MUR)</th></tr>
    </thead>
    <tbody>
      <tr><td>{{serviceName}} - {{bandwidth}}</td><td class="text-right">MUR {{serviceSetupFee}}</td><td class="text-right">MUR {{bandwidthPrice}}</td></tr>
      {{featuresRows}}
      <tr><td><strong>Total</strong></td><td class="text-right"><strong>MUR {{totalOneTime}}</strong></td><td class="text-right"><strong>MUR {{totalMonthly}}</strong></td></tr>
    </tbody>
  </table>

  <div class="section-title">Remarks</div>
  <div style="white-space: pre-line;">{{notes}}</div>
</div>

<div class="page">
  <div class="order-header">
    <img class="logo" src="{{companyLogo}}" alt="{{companyName}}">
    <div class="doc">Document Number: {{quoteNumber}}</div>
  </div>

  <div class="section-title">Terms and Conditions</div>
  <ol class="terms">
    <li>This order is subject to the standard terms of service of {{companyName}}.</li>
    <li>The minimum contract term is {{contractTerm}} months from the service activation date.</li>
    <li>Installation charges are invoiced on acceptance; recurring charges are invoiced monthly in advance.</li>
    <li>All prices are in MUR and exclude VAT.</li>
    <li>This order form is valid until {{expirationDate}}.</li>
  </ol>

  <div class="signatures">
    <div>
      <div class="signature-line"></div>
      <div>For and on behalf of {{customerName}}</div>
      <div class="muted">Name, title and date</div>
    </div>
    <div>
      <div class="signature-line"></div>
      <div>For and on behalf of {{companyName}}</div>
      <div class="muted">{{companyContact}} | {{companyEmail}}</div>
    </div>
  </div>
</div>
</body>
</html>
"""


BUILTIN_TEMPLATES: Dict[str, DocumentTemplate] = {
    'standard': DocumentTemplate('standard', 'Standard quote', STANDARD_TEMPLATE, builtin=True),
    'service-order': DocumentTemplate('service-order', 'Service order form', SERVICE_ORDER_TEMPLATE, builtin=True),
}
