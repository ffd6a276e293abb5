"""
Role -> permission catalogue
Permissions are '<action>:<resource>' strings checked by API route guards
"""
from typing import Dict, FrozenSet, Iterable, List

from .models import RoleName

# ============================================================
# Base Permissions
# ============================================================

ADMIN_BASE_PERMISSIONS = [
    "read:user", "create:user", "update:user", "delete:user",
    "read:post",
    "manage:settings",
    "access:adminDashboard",
    "update:site_settings",
]

MANAGER_BASE_PERMISSIONS = [
    "read:user",
    "read:post",
    "access:managerDashboard",
]

USER_BASE_PERMISSIONS = [
    "read:post",
    "update:ownPost",
    "update:ownProfile",
]

# ============================================================
# CMS & Blog Permissions
# ============================================================

ADMIN_CMS_PERMISSIONS = [
    "read:cms_section_definitions", "read:any_page", "browse:cms_components", "read:cms_component_definition",
    "list:all_pages", "find:pages_by_section", "delete:cms_section", "create:cms_component_definition",
    "update:cms_component_definition", "delete:cms_component_definition", "update:cms_section_metadata",
    "edit:cms_content", "create:page", "edit:page", "delete:page", "edit:page_structure",
]

MANAGER_CMS_PERMISSIONS = [
    "read:cms_section_definitions", "read:any_page", "browse:cms_components", "read:cms_component_definition",
    "list:all_pages", "find:pages_by_section", "delete:cms_section", "update:cms_section_metadata",
    "edit:cms_content", "create:page", "edit:page", "edit:page_structure",
    "manage:cms_components",
]

EDITOR_CMS_PERMISSIONS = [
    "read:cms_section_definitions", "browse:cms_components", "read:cms_component_definition",
    "update:cms_section_metadata", "edit:cms_content", "read:any_page",
]

ADMIN_BLOG_POST_PERMISSIONS = [
    "create:blog", "update:blog", "delete:blog",
    "create:post", "update:any_post", "delete:post", "publish:post",
]

MANAGER_BLOG_POST_PERMISSIONS = [
    "create:blog", "update:blog",
    "create:post", "update:any_post", "delete:post", "publish:post",
]

EDITOR_BLOG_POST_PERMISSIONS = [
    "create:post", "update:own_post", "read:any_post",
]

# ============================================================
# E-commerce Permissions
# ============================================================

ADMIN_ECOMMERCE_PERMISSIONS = [
    "list:shops", "view:shop_details", "create:shop", "update:shop", "delete:shop",
    "list:products", "view:any_product", "create:product", "update:any_product", "delete:any_product",
    "manage:product_categories", "create:product_category", "update:product_category", "delete:product_category",
    "view:taxes", "manage:taxes",
    "list:orders", "view:any_order", "update:any_order", "delete:order",
    "manage:payment_settings", "view:payments", "manage:payments",
    "manage:customers", "view:customer_details",
    "manage:discounts", "create:discount", "update:discount", "delete:discount",
    "manage:currencies",
    "view:shipping_zones", "manage:shipping_zones",
]

MANAGER_ECOMMERCE_PERMISSIONS = [
    "list:shops", "view:shop_details",
    "list:products", "view:any_product", "create:product", "update:any_product",
    "manage:product_categories",
    "list:orders", "view:any_order", "update:any_order",
    "view:payments",
    "manage:customers",
    "manage:discounts",
]

CUSTOMER_ECOMMERCE_PERMISSIONS = [
    "view:own_orders", "create:order", "view:cart", "update:cart",
    "view:public_products", "view:product_details",
]

# ============================================================
# HR Permissions
# ============================================================

HR_ADMIN_PERMISSIONS = [
    "list:employees", "view:any_employee_profile", "create:employee", "update:employee", "delete:employee",
    "manage:departments", "create:department", "update:department", "delete:department",
    "manage:positions", "create:position", "update:position", "delete:position",
    "view:all_attendance", "manage:attendance", "generate:hr_reports",
    "manage:leaves", "approve:leave", "reject:leave",
    "manage:benefits", "assign:benefits",
    "manage:payroll", "process:payroll",
    "manage:performance_reviews", "create:performance_review",
    "manage:trainings", "assign:training",
]

HR_MANAGER_PERMISSIONS = [
    "list:employees", "view:any_employee_profile", "update:employee",
    "view:departments", "view:positions",
    "view:all_attendance", "manage:attendance",
    "approve:leave", "reject:leave", "view:leaves",
    "view:benefits",
    "view:payroll",
    "create:performance_review", "view:performance_reviews",
    "assign:training", "view:trainings",
]

EMPLOYEE_PERMISSIONS = [
    "view:own_employee_profile", "update:own_profile",
    "view:own_attendance", "clock:in_out",
    "request:leave", "view:own_leaves",
    "view:own_benefits",
    "view:own_payroll",
    "view:own_performance_reviews",
    "view:assigned_trainings",
]

# ============================================================
# Booking Permissions
# ============================================================

BOOKING_ADMIN_PERMISSIONS = [
    "manage:locations", "create:location", "update:location", "delete:location",
    "manage:service_categories", "create:service_category", "update:service_category", "delete:service_category",
    "manage:services", "create:service", "update:service", "delete:service",
    "manage:staff_profiles", "create:staff_profile", "update:staff_profile", "delete:staff_profile",
    "manage:booking_rules", "update:booking_rules",
    "view:all_bookings", "create:booking_for_others", "update:any_booking", "cancel:any_booking",
    "assign:staff_to_service", "assign:staff_to_location",
    "update:any_staff_schedule",
]

AGENT_PERMISSIONS = [
    "view:own_staff_profile", "update:own_staff_schedule",
    "view:assigned_bookings", "update:assigned_bookings",
    "create:booking_for_others",
]

CUSTOMER_BOOKING_PERMISSIONS = [
    "create:own_booking", "view:own_bookings", "update:own_booking", "cancel:own_booking",
    "view:available_services", "view:available_slots",
]

# ============================================================
# Complementary Permissions
# ============================================================

FINANCE_MANAGER_PERMISSIONS = [
    "view:financial_reports", "generate:financial_reports",
    "manage:billing", "create:invoice", "update:invoice",
    "view:payments", "manage:payments",
    "manage:taxes", "view:tax_reports",
    "manage:currencies", "view:revenue_analytics",
]

SALES_REP_PERMISSIONS = [
    "view:customers", "create:customer", "update:customer",
    "view:leads", "create:lead", "update:lead",
    "view:opportunities", "create:opportunity", "update:opportunity",
    "view:sales_reports", "track:sales_performance",
]

INSTRUCTOR_PERMISSIONS = [
    "view:courses", "create:course", "update:own_course",
    "view:students", "manage:course_enrollment",
    "create:lesson", "update:lesson", "delete:own_lesson",
    "grade:assignments", "view:student_progress",
]

PROJECT_LEAD_PERMISSIONS = [
    "view:projects", "create:project", "update:project",
    "view:tasks", "create:task", "update:task", "assign:task",
    "view:team_members", "assign:team_members",
    "view:project_reports", "track:project_progress",
]

# ============================================================
# Platform Permissions
# ============================================================

PLATFORM_ADMIN_PERMISSIONS = [
    "manage:tenants", "view:tenant_analytics",
    "manage:modules", "activate:modules", "deactivate:modules",
    "manage:plans", "create:plan", "update:plan",
    "view:platform_analytics", "generate:usage_reports",
]

SUPPORT_AGENT_PERMISSIONS = [
    "view:support_dashboard", "view:tickets", "update:ticket",
    "view:user_issues", "assist:users",
    "view:system_status",
]


def _union(*groups: Iterable[str]) -> FrozenSet[str]:
    merged = set()
    for group in groups:
        merged.update(group)
    return frozenset(merged)


ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    # Global platform roles
    RoleName.SUPER_ADMIN.value: _union(
        ADMIN_BASE_PERMISSIONS, ADMIN_CMS_PERMISSIONS, ADMIN_BLOG_POST_PERMISSIONS,
        ADMIN_ECOMMERCE_PERMISSIONS, HR_ADMIN_PERMISSIONS, BOOKING_ADMIN_PERMISSIONS,
        FINANCE_MANAGER_PERMISSIONS, PLATFORM_ADMIN_PERMISSIONS,
        ["manage:all_tenants", "access:all_databases", "manage:platform_configuration"],
    ),
    RoleName.PLATFORM_ADMIN.value: _union(
        PLATFORM_ADMIN_PERMISSIONS,
        ["view:tenant_details", "manage:pricing", "view:usage_analytics"],
    ),
    RoleName.SUPPORT_AGENT.value: _union(
        SUPPORT_AGENT_PERMISSIONS,
        ["read:user", "view:basic_tenant_info"],
    ),

    # Tenant level roles
    RoleName.TENANT_ADMIN.value: _union(
        ADMIN_BASE_PERMISSIONS, ADMIN_CMS_PERMISSIONS, ADMIN_BLOG_POST_PERMISSIONS,
        ADMIN_ECOMMERCE_PERMISSIONS, HR_ADMIN_PERMISSIONS, BOOKING_ADMIN_PERMISSIONS,
        FINANCE_MANAGER_PERMISSIONS,
        ["manage:tenant_settings", "manage:tenant_users", "activate:tenant_modules"],
    ),
    RoleName.TENANT_MANAGER.value: _union(
        MANAGER_BASE_PERMISSIONS, MANAGER_CMS_PERMISSIONS, MANAGER_BLOG_POST_PERMISSIONS,
        MANAGER_ECOMMERCE_PERMISSIONS, HR_MANAGER_PERMISSIONS,
        ["view:reports", "approve:actions"],
    ),
    RoleName.TENANT_USER.value: _union(USER_BASE_PERMISSIONS, ["access:tenant_dashboard"]),

    # Module roles
    RoleName.CONTENT_MANAGER.value: _union(ADMIN_CMS_PERMISSIONS, ADMIN_BLOG_POST_PERMISSIONS, ["manage:media"]),
    RoleName.CONTENT_EDITOR.value: _union(EDITOR_CMS_PERMISSIONS, EDITOR_BLOG_POST_PERMISSIONS),
    RoleName.HR_ADMIN.value: _union(HR_ADMIN_PERMISSIONS),
    RoleName.HR_MANAGER.value: _union(HR_MANAGER_PERMISSIONS),
    RoleName.EMPLOYEE.value: _union(EMPLOYEE_PERMISSIONS),
    RoleName.BOOKING_ADMIN.value: _union(BOOKING_ADMIN_PERMISSIONS),
    RoleName.AGENT.value: _union(AGENT_PERMISSIONS),
    RoleName.CUSTOMER.value: _union(CUSTOMER_BOOKING_PERMISSIONS, CUSTOMER_ECOMMERCE_PERMISSIONS),
    RoleName.STORE_ADMIN.value: _union(ADMIN_ECOMMERCE_PERMISSIONS),
    RoleName.STORE_MANAGER.value: _union(MANAGER_ECOMMERCE_PERMISSIONS),

    # Complementary roles
    RoleName.FINANCE_MANAGER.value: _union(FINANCE_MANAGER_PERMISSIONS),
    RoleName.SALES_REP.value: _union(SALES_REP_PERMISSIONS),
    RoleName.INSTRUCTOR.value: _union(INSTRUCTOR_PERMISSIONS),
    RoleName.PROJECT_LEAD.value: _union(PROJECT_LEAD_PERMISSIONS),
}


def get_permissions_for_role(role: str) -> List[str]:
    """
    Sorted permissions granted to a role

    Unknown roles get no permissions.
    """
    return sorted(ROLE_PERMISSIONS.get(role, frozenset()))
