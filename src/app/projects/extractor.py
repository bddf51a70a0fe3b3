"""Record extraction: generic XML tree -> normalized Project list.

Source documents look like::

    <Projects>
      <Project ProjectID="..." Title="..." Stage="..." URL="..." UpdateDate="..." UpdateText="...">
        <Companies>
          <Company CompanyID="..." Name="..." URL="..." Website="..." Email="..."
                   BiddingRole="..." Role="...">
            <Types><Type Type="Architect" Rank="2"/></Types>
            <Contacts>
              <Contact ContactID="..." Name="...">
                <Email>...</Email><Phone>...</Phone><LinkedIn>...</LinkedIn>
              </Contact>
            </Contacts>
            <Address Type="...">
              <Address1/><Address2/><City/><State/><Zip/><County/>
            </Address>
            <Phones><Phone Type="Office">555-0100</Phone></Phones>
          </Company>
        </Companies>
      </Project>
    </Projects>

Every element and attribute is optional and any element may appear once or
many times. Lookups go through the total helpers in ``xml_tree`` so a miss
anywhere yields None rather than an exception.

Classification of companies (first rule that applies):
    1. ``BiddingRole`` attribute present -> Bidder (rank from first Types/Type).
    2. ``Role`` attribute, else first Types/Type ``Type`` attribute, is a
       recognized TeamRole -> TeamMember.
    3. Otherwise the company is dropped.
"""

from __future__ import annotations

from typing import Any

from src.app.projects.schemas import (
    Address,
    Bidder,
    Contact,
    Phone,
    Project,
    TeamMember,
    TeamRole,
)
from src.app.projects.xml_tree import as_list, attr, child, child_text, collection, first, text_of

_TEAM_ROLES: frozenset[str] = frozenset(role.value for role in TeamRole)


def _to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _extract_contacts(company: Any) -> list[Contact]:
    contacts: list[Contact] = []
    for node in collection(company, "Contacts", "Contact"):
        name = attr(node, "Name")
        if not name:
            continue
        contacts.append(
            Contact(
                contact_id=attr(node, "ContactID"),
                name=name,
                email=child_text(node, "Email"),
                phone=child_text(node, "Phone"),
                linkedin=child_text(node, "LinkedIn"),
            )
        )
    return contacts


def _extract_address(company: Any) -> Address | None:
    node = first(child(company, "Address"))
    if node is None:
        return None
    return Address(
        type=attr(node, "Type"),
        address1=child_text(node, "Address1"),
        address2=child_text(node, "Address2"),
        city=child_text(node, "City"),
        state=child_text(node, "State"),
        zip=child_text(node, "Zip"),
        county=child_text(node, "County"),
    )


def _extract_phones(company: Any) -> list[Phone]:
    return [
        Phone(type=attr(node, "Type"), number=text_of(node))
        for node in collection(company, "Phones", "Phone")
    ]


def _classify_company(company: Any) -> Bidder | TeamMember | None:
    """Build a Bidder or TeamMember from a ``<Company>`` node, or None to drop it."""
    company_type = first(collection(company, "Types", "Type"))
    common: dict[str, Any] = {
        "company_id": attr(company, "CompanyID"),
        "name": attr(company, "Name"),
        "url": attr(company, "URL"),
        "website": attr(company, "Website"),
        "email": attr(company, "Email"),
        "contacts": _extract_contacts(company),
        "address": _extract_address(company),
        "phones": _extract_phones(company),
    }

    bidding_role = attr(company, "BiddingRole")
    if bidding_role is not None:
        return Bidder(
            **common,
            bidding_role=bidding_role,
            rank=_to_int(attr(company_type, "Rank")),
        )

    role = attr(company, "Role")
    if role is None:
        role = attr(company_type, "Type")
    if role in _TEAM_ROLES:
        return TeamMember(**common, role=TeamRole(role))

    return None


def _extract_project(node: Any) -> Project:
    bidders: list[Bidder] = []
    team: list[TeamMember] = []

    for company in collection(node, "Companies", "Company"):
        classified = _classify_company(first(company))
        if isinstance(classified, Bidder):
            bidders.append(classified)
        elif isinstance(classified, TeamMember):
            team.append(classified)

    return Project(
        project_id=attr(node, "ProjectID"),
        title=attr(node, "Title"),
        stage=attr(node, "Stage"),
        url=attr(node, "URL"),
        update_date=attr(node, "UpdateDate"),
        update_text=attr(node, "UpdateText"),
        prospective_bidders=bidders,
        project_team=team,
    )


def has_projects(document: Any) -> bool:
    """True when ``document`` carries a ``Projects/Project`` container."""
    return bool(as_list(child(first(child(document, "Projects")), "Project")))


def extract_projects(document: Any) -> list[Project] | Any:
    """Normalize every ``<Project>`` of a parsed document.

    Args:
        document: Generic tree from ``xml_tree.parse_xml``.

    Returns:
        List of Project models, or ``document`` itself (unchanged) when it has
        no ``Projects/Project`` container.
    """
    if not has_projects(document):
        return document

    projects_node = first(child(document, "Projects"))
    return [_extract_project(first(node)) for node in as_list(child(projects_node, "Project"))]
